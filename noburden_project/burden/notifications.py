# noburden_project/burden/notifications.py
import config


def format_crossing_warning(new_level):
    return (f"WARNING: Your level has reached {new_level} you now suffer from the effects of burden!\n"
            f"(This effect may not be applied until the next time you log in.)")


class NotificationSink:
    """Delivers burden warnings to players who are in the world.

    lookup_player(player_id) returns the active Player or None. Players that
    are not connected get a console line instead.
    """

    def __init__(self, lookup_player, message_type=None):
        self.lookup_player = lookup_player
        self.message_type = message_type or getattr(config, 'BURDEN_WARNING_MESSAGE_TYPE', "warning_burden")

    def send(self, event) -> bool:
        warning_text = format_crossing_warning(event.new_level)
        player = self.lookup_player(event.player_id)
        if player is not None and getattr(player, 'sid', None):
            player.add_message(warning_text, self.message_type)
            if config.DEBUG_MODE:
                print(f"DEBUG NOBURDEN: Burden warning queued for {player.name} (level {event.new_level}).")
            return True
        print(f"NOBURDEN: Player {event.player_id} reached level {event.new_level} and now suffers from burden (not connected).")
        return False
