# noburden_project/burden/plugin.py
import config
from burden.capacity_override import CapacityOverride
from burden.crossing_detector import CrossingDetector
from burden.notifications import NotificationSink
from burden.settings import SettingsError, SettingsManager, SettingsWatcher
from burden.threshold_store import ThresholdStore


def player_level(player):
    return getattr(player, 'level', 1) or 1


class NoBurdenPlugin:
    """Host-facing entry point of the NoBurden mod.

    The host calls the on_* hooks at login, logout and after every level
    change, and routes its capacity and encumbrance values through
    effective_capacity() / applied_encumbrance(). Crossing warnings are sent
    after the detector has released its lock.
    """

    def __init__(self, settings_path=None, lookup_player=None, offline_store=None, watch_settings=None):
        self.threshold_store = ThresholdStore()
        self.detector = CrossingDetector(self.threshold_store, offline_store)
        self.capacity = CapacityOverride(self.threshold_store)
        self.sink = NotificationSink(lookup_player or (lambda player_id: None))
        self.settings = SettingsManager(settings_path or getattr(config, 'BURDEN_SETTINGS_FILE', "Settings.json"),
                                        self.threshold_store)
        if watch_settings is None:
            watch_settings = getattr(config, 'BURDEN_WATCH_SETTINGS', False)
        self.watcher = SettingsWatcher(self.settings) if watch_settings else None
        self.started = False

    # --- Lifecycle ---
    def start(self):
        try:
            self.settings.load()
        except SettingsError as e:
            print(f"ERROR SETTINGS: {e} Using burden threshold {self.threshold_store.get()}.")
        if self.watcher:
            self.watcher.start()
        self.started = True
        print("NoBurden started successfully!")
        print(f"Burden disabled for characters below level {self.threshold_store.get()}")

    def stop(self):
        if self.watcher:
            self.watcher.stop()
        self.started = False
        print("NoBurden stopped!")

    # --- Session / progression hooks ---
    def _deliver(self, event):
        if event is not None:
            self.sink.send(event)
        return event

    def on_player_login(self, player):
        return self._deliver(self.detector.on_login(player.player_id, player_level(player)))

    def on_level_change(self, player):
        return self._deliver(self.detector.on_level_change(player.player_id, player_level(player)))

    def on_player_logout(self, player):
        self.detector.on_logout(player.player_id)

    # --- Burden overrides ---
    def is_burden_ignored(self, player) -> bool:
        return self.capacity.is_burden_ignored(player_level(player))

    def effective_capacity(self, player):
        computed_capacity = player.get_encumbrance_capacity()
        override = self.capacity.override_capacity(player_level(player))
        return computed_capacity if override is None else override

    def applied_encumbrance(self, player, value):
        return self.capacity.override_applied_value(player_level(player), value)

    # --- Admin operations ---
    def reload_settings(self):
        old_threshold, new_threshold = self.settings.reload()
        feedback = f"NoBurden settings reloaded. Burden threshold: {new_threshold}"
        if old_threshold != new_threshold:
            feedback += f" (was {old_threshold})"
        return feedback

    def set_limit(self, value):
        old_threshold, new_threshold = self.settings.save_threshold(value)
        feedback = f"NoBurden threshold set to {new_threshold}"
        if old_threshold != new_threshold:
            feedback += f" (was {old_threshold})"
        return feedback

    def restore_default(self):
        old_threshold, new_threshold = self.settings.restore_default()
        feedback = f"NoBurden threshold restored to default {new_threshold}"
        if old_threshold != new_threshold:
            feedback += f" (was {old_threshold})"
        return feedback

    def status_lines(self):
        threshold = self.threshold_store.get()
        if threshold == 0:
            lines = ["NoBurden: burden applies at all levels (threshold 0)."]
        else:
            lines = [f"NoBurden: burden disabled for characters below level {threshold}."]
        lines.append(f"Players tracked below threshold: {len(self.detector)}")
        lines.append(f"Settings file: {self.settings.path}")
        return lines
