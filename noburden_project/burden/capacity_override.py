# noburden_project/burden/capacity_override.py
import config


class CapacityOverride:
    """Stateless burden overrides for characters under the threshold."""

    def __init__(self, threshold_store, unlimited_capacity=None):
        self.threshold_store = threshold_store
        self.unlimited_capacity = unlimited_capacity if unlimited_capacity is not None \
            else getattr(config, 'UNLIMITED_CAPACITY', 10000000)

    def is_burden_ignored(self, level) -> bool:
        return level < self.threshold_store.get()

    def override_capacity(self, level):
        """Unlimited capacity below the threshold, otherwise None (keep the computed value)."""
        if self.is_burden_ignored(level):
            return self.unlimited_capacity
        return None

    def override_applied_value(self, level, proposed_value):
        # An unset burden value stays unset
        if proposed_value is None:
            return None
        if self.is_burden_ignored(level):
            return 0
        return proposed_value
