import json
import os
import threading
import time
from unittest.mock import MagicMock, patch

import pytest
from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

import config
from burden.settings import (
    SettingsError,
    SettingsManager,
    SettingsWatcher,
    _SettingsFileHandler,
    load_or_create_settings,
    parse_threshold,
)
from burden.threshold_store import ThresholdStore

KEY = config.BURDEN_SETTINGS_KEY


def write_settings(path, payload):
    with open(path, "w", encoding="utf-8") as f:
        if isinstance(payload, str):
            f.write(payload)
        else:
            json.dump(payload, f)



class TestLoadOrCreate:
    def test_missing_file_is_created_with_default(self, settings_path):
        settings = load_or_create_settings(settings_path)
        assert settings == {KEY: config.DEFAULT_BURDEN_THRESHOLD}
        with open(settings_path, encoding="utf-8") as f:
            assert json.load(f) == settings

    def test_malformed_json(self, settings_path):
        write_settings(settings_path, "{not json")
        with pytest.raises(SettingsError):
            load_or_create_settings(settings_path)

    def test_non_object_json(self, settings_path):
        write_settings(settings_path, [1, 2, 3])
        with pytest.raises(SettingsError):
            load_or_create_settings(settings_path)


class TestParseThreshold:
    def test_valid(self):
        assert parse_threshold({KEY: 20}) == 20

    def test_missing_key_uses_default(self):
        assert parse_threshold({}) == config.DEFAULT_BURDEN_THRESHOLD

    @pytest.mark.parametrize("bad_value", [-1, "20", 3.5, True, None])
    def test_invalid_values(self, bad_value):
        with pytest.raises(SettingsError):
            parse_threshold({KEY: bad_value})


class TestSettingsManager:
    def test_load_applies_threshold(self, settings_path):
        write_settings(settings_path, {KEY: 30})
        store = ThresholdStore(10)
        manager = SettingsManager(settings_path, store)
        assert manager.load() == (10, 30)
        assert store.get() == 30

    def test_failed_reload_keeps_previous_threshold(self, settings_path):
        write_settings(settings_path, {KEY: 30})
        store = ThresholdStore(10)
        manager = SettingsManager(settings_path, store)
        manager.load()
        write_settings(settings_path, {KEY: -4})
        with pytest.raises(SettingsError):
            manager.reload()
        assert store.get() == 30

    def test_save_threshold_persists(self, settings_path):
        write_settings(settings_path, {KEY: 30, "other_setting": "kept"})
        store = ThresholdStore(30)
        manager = SettingsManager(settings_path, store)
        assert manager.save_threshold(12) == (30, 12)
        assert store.get() == 12
        with open(settings_path, encoding="utf-8") as f:
            assert json.load(f) == {KEY: 12, "other_setting": "kept"}

    def test_save_invalid_threshold_changes_nothing(self, settings_path):
        write_settings(settings_path, {KEY: 30})
        store = ThresholdStore(30)
        manager = SettingsManager(settings_path, store)
        with pytest.raises(SettingsError):
            manager.save_threshold(-1)
        assert store.get() == 30
        with open(settings_path, encoding="utf-8") as f:
            assert json.load(f) == {KEY: 30}

    def test_save_over_broken_file(self, settings_path):
        write_settings(settings_path, "garbage")
        store = ThresholdStore(30)
        manager = SettingsManager(settings_path, store)
        manager.save_threshold(5)
        assert load_or_create_settings(settings_path) == {KEY: 5}

    def test_restore_default(self, settings_path):
        store = ThresholdStore(3)
        manager = SettingsManager(settings_path, store, default_threshold=40)
        assert manager.restore_default() == (3, 40)
        assert parse_threshold(load_or_create_settings(settings_path)) == 40


class TestSettingsWatcher:
    def test_reloads_on_change(self, settings_path):
        write_settings(settings_path, {KEY: 30})
        store = ThresholdStore(10)
        manager = SettingsManager(settings_path, store)
        manager.load()
        watcher = SettingsWatcher(manager)

        assert watcher.check_once() is False
        write_settings(settings_path, {KEY: 45})
        assert watcher.check_once() is True
        assert store.get() == 45

    def test_outside_edit_with_unchanged_mtime_is_detected(self, settings_path):
        """Coarse filesystems can give an outside edit the same mtime as our last write."""
        store = ThresholdStore(10)
        manager = SettingsManager(settings_path, store)
        manager.save_threshold(22)
        stat = os.stat(settings_path)
        write_settings(settings_path, {KEY: 7})
        os.utime(settings_path, ns=(stat.st_atime_ns, stat.st_mtime_ns))
        assert SettingsWatcher(manager).check_once() is True
        assert store.get() == 7

    def test_own_writes_do_not_trigger_reload(self, settings_path, capsys):
        store = ThresholdStore(10)
        manager = SettingsManager(settings_path, store)
        manager.load()
        watcher = SettingsWatcher(manager)
        handler = _SettingsFileHandler(watcher)

        manager.save_threshold(22)
        # the events watchdog delivers for a temp-file-and-rename save
        handler.on_created(FileCreatedEvent(settings_path + ".tmp"))
        handler.on_moved(FileMovedEvent(settings_path + ".tmp", settings_path))
        handler.on_modified(FileModifiedEvent(settings_path))

        assert "settings file changed" not in capsys.readouterr().out
        assert store.get() == 22

    def test_own_writes_racing_with_file_events(self, settings_path, capsys):
        store = ThresholdStore(10)
        manager = SettingsManager(settings_path, store)
        manager.load()
        watcher = SettingsWatcher(manager)
        done = threading.Event()

        def keep_checking():
            while not done.is_set():
                watcher.check_once()

        checker = threading.Thread(target=keep_checking)
        checker.start()
        try:
            for level in range(1, 41):
                manager.save_threshold(level)
        finally:
            done.set()
            checker.join(timeout=5)

        assert "settings file changed" not in capsys.readouterr().out
        assert store.get() == 40

    def test_broken_file_reported_once(self, settings_path):
        write_settings(settings_path, {KEY: 30})
        store = ThresholdStore(10)
        manager = SettingsManager(settings_path, store)
        manager.load()
        watcher = SettingsWatcher(manager)
        write_settings(settings_path, "{oops")
        with patch("builtins.print") as mock_print:
            assert watcher.check_once() is False
            assert watcher.check_once() is False
        assert store.get() == 30
        assert mock_print.call_count == 1

    def test_handler_ignores_other_files(self, tmp_path):
        watcher = MagicMock()
        watcher.settings_path = os.path.abspath(str(tmp_path / "Settings.json"))
        handler = _SettingsFileHandler(watcher)

        handler.on_modified(FileModifiedEvent(str(tmp_path / "notes.txt")))
        handler.on_moved(FileMovedEvent(str(tmp_path / "Settings.json"), str(tmp_path / "old.json")))
        handler.on_modified(DirModifiedEvent(str(tmp_path)))
        watcher.check_once.assert_not_called()

        handler.on_modified(FileModifiedEvent(str(tmp_path / "Settings.json")))
        watcher.check_once.assert_called_once()

    def test_observer_picks_up_outside_edit(self, settings_path):
        write_settings(settings_path, {KEY: 30})
        store = ThresholdStore(10)
        manager = SettingsManager(settings_path, store)
        manager.load()
        watcher = SettingsWatcher(manager)
        watcher.start()
        try:
            write_settings(settings_path, {KEY: 45})
            deadline = time.monotonic() + 5.0
            while store.get() != 45 and time.monotonic() < deadline:
                time.sleep(0.05)
        finally:
            watcher.stop()
        assert store.get() == 45

    def test_start_stop(self, settings_path):
        store = ThresholdStore(10)
        manager = SettingsManager(settings_path, store)
        manager.load()
        watcher = SettingsWatcher(manager)
        watcher.start()
        watcher.start()
        watcher.stop()
        assert watcher._observer is None
        watcher.stop()
