# noburden_project/burden/settings.py
import json
import os
import threading

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

import config
from burden.threshold_store import InvalidConfiguration


class SettingsError(Exception):
    """Settings.json could not be read, parsed or written. The active threshold is unchanged."""


def default_settings():
    return {getattr(config, 'BURDEN_SETTINGS_KEY', "ignore_burden_below_character_level"):
            getattr(config, 'DEFAULT_BURDEN_THRESHOLD', 50)}


def _write_settings(path, settings):
    """Writes settings through a temp file and returns the exact text written."""
    text = json.dumps(settings, indent=2) + "\n"
    tmp_path = f"{path}.tmp"
    try:
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(text)
        os.replace(tmp_path, path)
    except OSError as e:
        raise SettingsError(f"Could not write settings file '{path}': {e}") from e
    return text


def _read_settings_text(path):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except OSError as e:
        raise SettingsError(f"Could not read settings file '{path}': {e}") from e


def _decode_settings(path, text):
    try:
        settings = json.loads(text)
    except json.JSONDecodeError as e:
        raise SettingsError(f"Settings file '{path}' is not valid JSON: {e}") from e
    if not isinstance(settings, dict):
        raise SettingsError(f"Settings file '{path}' must contain a JSON object.")
    return settings


def _load_or_create(path):
    """Returns (settings, text_on_disk), creating the file with defaults if it does not exist yet."""
    if not os.path.exists(path):
        settings = default_settings()
        text = _write_settings(path, settings)
        print(f"NOBURDEN: Created default settings file at '{path}'.")
        return settings, text
    text = _read_settings_text(path)
    return _decode_settings(path, text), text


def load_or_create_settings(path):
    """Reads the settings file, creating it with defaults if it does not exist yet."""
    settings, _ = _load_or_create(path)
    return settings


def parse_threshold(settings):
    key = getattr(config, 'BURDEN_SETTINGS_KEY', "ignore_burden_below_character_level")
    value = settings.get(key, getattr(config, 'DEFAULT_BURDEN_THRESHOLD', 50))
    if isinstance(value, bool) or not isinstance(value, int):
        raise SettingsError(f"'{key}' must be a whole number, got {value!r}.")
    if value < 0:
        raise SettingsError(f"'{key}' cannot be negative (got {value}).")
    return value


class SettingsManager:
    """Moves the burden threshold between Settings.json and the ThresholdStore.

    Every failure raises SettingsError before the store is touched, so a bad
    file or a bad command argument leaves the running threshold as it was.
    The manager remembers the file text it last read or wrote; change
    detection compares against that text under the same lock as the writes,
    so the manager's own saves never look like outside edits.
    """

    def __init__(self, path, threshold_store, default_threshold=None):
        self.path = path
        self.threshold_store = threshold_store
        self.default_threshold = default_threshold if default_threshold is not None \
            else getattr(config, 'DEFAULT_BURDEN_THRESHOLD', 50)
        self._file_lock = threading.Lock()
        self._last_content = None

    def _content_on_disk(self):
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError:
            return None

    def _load_locked(self):
        # caller holds _file_lock
        try:
            settings, self._last_content = _load_or_create(self.path)
        except SettingsError:
            self._last_content = self._content_on_disk()
            raise
        new_threshold = parse_threshold(settings)
        old_threshold = self.threshold_store.set(new_threshold)
        return old_threshold, new_threshold

    def load(self):
        """Loads the threshold from disk. Returns (old_threshold, new_threshold)."""
        with self._file_lock:
            return self._load_locked()

    reload = load

    def reload_if_changed(self):
        """Reloads only if the file differs from what was last read or written.

        Returns (old_threshold, new_threshold), or None when nothing changed.
        A broken file is remembered too, so it is reported once per edit.
        """
        with self._file_lock:
            if self._content_on_disk() == self._last_content:
                return None
            return self._load_locked()

    def save_threshold(self, value):
        """Validates, persists and activates a new threshold. Returns (old_threshold, new_threshold)."""
        key = getattr(config, 'BURDEN_SETTINGS_KEY', "ignore_burden_below_character_level")
        new_threshold = parse_threshold({key: value})
        with self._file_lock:
            try:
                settings, _ = _load_or_create(self.path)
            except SettingsError as e:
                # keep going: the file is about to be rewritten
                print(f"ERROR SETTINGS: {e} Overwriting with a fresh settings file.")
                settings = default_settings()
            settings[key] = new_threshold
            self._last_content = _write_settings(self.path, settings)
            try:
                old_threshold = self.threshold_store.set(new_threshold)
            except InvalidConfiguration as e:
                raise SettingsError(str(e)) from e
        return old_threshold, new_threshold

    def restore_default(self):
        return self.save_threshold(self.default_threshold)


class _SettingsFileHandler(FileSystemEventHandler):
    """Forwards events for the settings file (and nothing else in its directory) to the watcher."""

    def __init__(self, watcher):
        super().__init__()
        self.watcher = watcher

    def _is_settings_file(self, path):
        return os.path.abspath(os.fsdecode(path)) == self.watcher.settings_path

    def on_modified(self, event):
        if not event.is_directory and self._is_settings_file(event.src_path):
            self.watcher.check_once()

    on_created = on_modified

    def on_moved(self, event):
        # our own saves, and many editors, land as a rename onto Settings.json
        if not event.is_directory and self._is_settings_file(event.dest_path):
            self.watcher.check_once()


class SettingsWatcher:
    """Watches Settings.json with watchdog and reloads the threshold when it changes on disk."""

    def __init__(self, manager):
        self.manager = manager
        self.settings_path = os.path.abspath(manager.path)
        self._observer = None

    def start(self):
        if self._observer is not None:
            return
        directory = os.path.dirname(self.settings_path)
        os.makedirs(directory, exist_ok=True)
        observer = Observer()
        observer.schedule(_SettingsFileHandler(self), directory, recursive=False)
        observer.start()
        self._observer = observer
        if config.DEBUG_MODE:
            print(f"DEBUG NOBURDEN: Watching '{self.settings_path}' for changes.")

    def stop(self):
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=2.0)
        if self._observer.is_alive():
            print("Warning: NoBurden settings watcher did not terminate cleanly.")
        self._observer = None

    def check_once(self) -> bool:
        """Reloads if the file changed since the last load or save. Returns True if it reloaded."""
        try:
            result = self.manager.reload_if_changed()
        except SettingsError as e:
            print(f"ERROR SETTINGS: Reload after file change failed, keeping threshold "
                  f"{self.manager.threshold_store.get()}. {e}")
            return False
        if result is None:
            return False
        old_threshold, new_threshold = result
        feedback = f"NoBurden settings file changed. Burden threshold: {new_threshold}"
        if old_threshold != new_threshold:
            feedback += f" (was {old_threshold})"
        print(feedback)
        return True
