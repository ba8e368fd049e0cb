# noburden_project/burden/crossing_detector.py
import threading
from dataclasses import dataclass
from typing import Optional

import config


@dataclass(frozen=True)
class CrossingEvent:
    player_id: str
    new_level: int


class MemoryObservationStore:
    """Offline observations kept in process memory. Used when no database store is configured."""

    def __init__(self):
        self._lock = threading.Lock()
        self._levels = {}

    def load(self, player_id):
        with self._lock:
            return self._levels.get(player_id)

    def save(self, player_id, level):
        with self._lock:
            self._levels[player_id] = level

    def clear(self, player_id):
        with self._lock:
            self._levels.pop(player_id, None)


class CrossingDetector:
    """Decides when a player's level has carried them past the burden threshold.

    Keeps the last level seen for every online player who is still below the
    threshold. An entry is dropped as soon as the player is seen at or above
    it, so a crossing is reported once and players who no longer need
    tracking cost nothing. On logout the entry moves to the offline store,
    which lets the next login catch a level gained while the character was
    not in the world (e.g. an admin grant).

    Every public method holds the map lock only for its read-compare-write;
    offline store I/O happens outside it and events are returned, not sent.
    """

    def __init__(self, threshold_store, offline_store=None):
        self.threshold_store = threshold_store
        self.offline_store = offline_store if offline_store is not None else MemoryObservationStore()
        self._lock = threading.Lock()
        self._observations = {}

    def _evaluate(self, player_id, previous_level, new_level, threshold) -> Optional[CrossingEvent]:
        # caller holds self._lock
        crossed = previous_level is not None and previous_level < threshold <= new_level
        if new_level < threshold:
            self._observations[player_id] = new_level
        else:
            self._observations.pop(player_id, None)
        if crossed:
            return CrossingEvent(player_id=player_id, new_level=new_level)
        return None

    def on_level_change(self, player_id, new_level) -> Optional[CrossingEvent]:
        threshold = self.threshold_store.get()
        with self._lock:
            previous_level = self._observations.get(player_id)
            event = self._evaluate(player_id, previous_level, new_level, threshold)
        if config.DEBUG_MODE and event:
            print(f"DEBUG NOBURDEN: Player {player_id} crossed threshold {threshold} ({previous_level} -> {new_level}).")
        return event

    def on_login(self, player_id, current_level) -> Optional[CrossingEvent]:
        persisted_level = self.offline_store.load(player_id)
        threshold = self.threshold_store.get()
        with self._lock:
            previous_level = self._observations.get(player_id)
            if previous_level is None:
                previous_level = persisted_level
            event = self._evaluate(player_id, previous_level, current_level, threshold)
        if persisted_level is not None:
            self.offline_store.clear(player_id)
        if config.DEBUG_MODE:
            print(f"DEBUG NOBURDEN: Login check for {player_id}: previous={previous_level}, "
                  f"current={current_level}, threshold={threshold}, crossed={event is not None}.")
        return event

    def on_logout(self, player_id):
        with self._lock:
            last_level = self._observations.pop(player_id, None)
        if last_level is not None:
            self.offline_store.save(player_id, last_level)
            if config.DEBUG_MODE:
                print(f"DEBUG NOBURDEN: Stored level {last_level} for {player_id} until next login.")

    def observed_level(self, player_id):
        with self._lock:
            return self._observations.get(player_id)

    def tracked_player_ids(self):
        with self._lock:
            return list(self._observations.keys())

    def __len__(self):
        with self._lock:
            return len(self._observations)
