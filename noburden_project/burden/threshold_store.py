# noburden_project/burden/threshold_store.py
import threading

import config


class InvalidConfiguration(ValueError):
    """Raised when a burden threshold is rejected. The previous value stays active."""


class ThresholdStore:
    """Holds the single burden threshold shared by every NoBurden decision point.

    Reads and writes swap one int under a lock, so get() never waits on
    anything slower than the swap itself. Changing the value notifies nobody;
    cached observations are re-checked on their next level change.
    """

    def __init__(self, initial=None):
        if initial is None:
            initial = getattr(config, 'DEFAULT_BURDEN_THRESHOLD', 50)
        self._lock = threading.Lock()
        self._value = self._validate(initial)

    @staticmethod
    def _validate(new_value):
        # bool is an int subclass; "true" is not a level
        if isinstance(new_value, bool) or not isinstance(new_value, int):
            raise InvalidConfiguration(f"Burden threshold must be an integer, got {new_value!r}.")
        if new_value < 0:
            raise InvalidConfiguration(f"Burden threshold cannot be negative (got {new_value}).")
        return new_value

    def get(self) -> int:
        with self._lock:
            return self._value

    def set(self, new_value) -> int:
        """Replaces the threshold and returns the value it replaced."""
        validated = self._validate(new_value)
        with self._lock:
            old_value = self._value
            self._value = validated
        if config.DEBUG_MODE and old_value != validated:
            print(f"DEBUG NOBURDEN: Burden threshold changed {old_value} -> {validated}.")
        return old_value
