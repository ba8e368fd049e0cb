# noburden_project/burden/commands.py
from burden.settings import SettingsError
from burden.threshold_store import InvalidConfiguration

ADMIN_COMMANDS = {
    "nbreload": "Reload NoBurden settings",
    "nblimit": "Set the NoBurden level threshold (nblimit <level>)",
    "nbdefault": "Restore the default NoBurden level threshold",
    "nbstatus": "Show the NoBurden threshold and tracked players",
}


def handle_admin_command(plugin, verb, args=None):
    """Runs a NoBurden admin command. Returns feedback text, or None if verb is not ours."""
    verb = (verb or "").lower()
    if verb not in ADMIN_COMMANDS:
        return None
    args = (args or "").strip()

    if verb == "nbstatus":
        return "\n".join(plugin.status_lines())

    try:
        if verb == "nbreload":
            return plugin.reload_settings()
        if verb == "nbdefault":
            return plugin.restore_default()
        if not args:
            return "Usage: nblimit <level>"
        try:
            new_limit = int(args.split()[0])
        except ValueError:
            return f"'{args.split()[0]}' is not a level. Usage: nblimit <level>"
        return plugin.set_limit(new_limit)
    except (SettingsError, InvalidConfiguration) as e:
        return f"NoBurden settings unchanged (threshold {plugin.threshold_store.get()}): {e}"
