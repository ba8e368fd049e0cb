# classes/player.py
import math

from bson import ObjectId

import config

# Name-based ids are prefixed so a hex-looking name is never read as an ObjectId
NAME_ID_PREFIX = "name:"


class Player:
    def __init__(self, sid, name="Unnamed Character"):
        self.sid = sid
        self.name = name
        self._queued_messages = []
        self.stats = {stat_name: getattr(config, 'DEFAULT_STAT_VALUE', 10)
                      for stat_name in getattr(config, 'ALL_STATS_ORDERED', [])}
        self.inventory = []
        self.level = 1; self.xp = 0
        self.unabsorbed_xp = 0
        self.encumbrance_val = 0
        self.db_id = None

        if config.DEBUG_MODE:
            print(f"DEBUG PLAYER ({self.name}, SID: {self.sid}): Initialized.")

    @property
    def player_id(self):
        """Stable character identity: the database id once saved, "name:<lowercased name>" before that."""
        if self.db_id:
            return str(self.db_id)
        return f"{NAME_ID_PREFIX}{self.name.lower()}"

    @property
    def is_admin(self):
        return self.name in getattr(config, 'ADMIN_PLAYER_NAMES', [])

    def add_message(self, text_or_payload, message_type="info"):
        if isinstance(text_or_payload, dict):
            if 'type' not in text_or_payload and message_type:
                text_or_payload['type'] = message_type
            self._queued_messages.append(text_or_payload)
        else:
            self._queued_messages.append({"text": str(text_or_payload), "type": str(message_type)})

    def get_queued_messages(self):
        messages = list(self._queued_messages)
        self._queued_messages.clear()
        return messages

    # --- Burden (host stand-ins) ---
    def get_encumbrance_capacity(self):
        return self.stats.get("strength", config.DEFAULT_STAT_VALUE) * getattr(config, 'CARRY_CAPACITY_PER_STRENGTH', 150)

    def get_inventory_burden(self):
        return len(self.inventory) * getattr(config, 'BURDEN_PER_INVENTORY_ITEM', 50)

    # --- Experience ---
    def get_xp_for_next_level(self):
        xp_needed_config = getattr(config, 'XP_LEVEL_THRESHOLDS', {})
        return xp_needed_config.get(self.level + 1, (self.level ** 2) * 100 + 100)

    def get_xp_absorption_amount_per_event(self):
        base_rate = getattr(config, 'XP_ABSORB_BASE_RATE', 19)
        logic_bonus = self.stats.get("logic", 0) // 10
        return max(getattr(config, 'MIN_XP_ABSORBED_PER_EVENT', 1), math.floor(base_rate + logic_bonus))

    def add_xp_to_pool(self, amount: int):
        if amount <= 0: return
        self.unabsorbed_xp += amount
        self.add_message(f"You gain {amount} experience (to be absorbed).", "xp_gain")

    def absorb_xp(self):
        """One absorption event. Returns the number of levels gained (usually 0)."""
        amount_to_absorb = min(self.unabsorbed_xp, self.get_xp_absorption_amount_per_event())
        if amount_to_absorb <= 0:
            return 0
        self.xp += amount_to_absorb
        self.unabsorbed_xp -= amount_to_absorb
        self.add_message(f"You feel more experienced as knowledge settles in your mind (+{amount_to_absorb} XP).", "xp_absorb")
        levels_gained = 0
        max_level = getattr(config, 'MAX_PLAYER_LEVEL', 275)
        while self.level < max_level and self.xp >= self.get_xp_for_next_level():
            self.level += 1
            levels_gained += 1
        if levels_gained:
            self.add_message(f"**Congratulations! You have reached level {self.level}!**", "level_up_major")
        return levels_gained

    # --- Persistence ---
    def to_dict(self):
        return {"sid": self.sid, "name": self.name, "stats": self.stats, "inventory": self.inventory,
                "level": self.level, "xp": self.xp, "unabsorbed_xp": self.unabsorbed_xp,
                "encumbrance_val": self.encumbrance_val,
                "db_id": str(self.db_id) if self.db_id else None}

    @classmethod
    def from_dict(cls, data, sid_on_load=None):
        player_sid = sid_on_load if sid_on_load else data.get("sid", f"restored_{data.get('name', 'char')}")
        player = cls(player_sid, data.get("name", "Restored Character"))
        db_id_str = data.get("db_id", data.get("_id"))
        if db_id_str and ObjectId.is_valid(db_id_str):
            player.db_id = ObjectId(db_id_str)
        elif db_id_str and config.DEBUG_MODE:
            print(f"DEBUG PLAYER LOAD: Invalid db_id format '{db_id_str}' for {player.name}.")
        loaded_stats = data.get("stats", {})
        for stat_key in config.ALL_STATS_ORDERED: player.stats[stat_key] = loaded_stats.get(stat_key, config.DEFAULT_STAT_VALUE)
        player.inventory = data.get("inventory", [])
        player.level = data.get("level", 1); player.xp = data.get("xp", 0)
        player.unabsorbed_xp = data.get('unabsorbed_xp', 0)
        player.encumbrance_val = data.get("encumbrance_val", 0)
        if config.DEBUG_MODE: print(f"DEBUG PLAYER {player.name}: Loaded from dict. SID set to {player.sid}. Level: {player.level}")
        return player

    def get_client_data(self, capacity=None):
        return {
            "name": self.name, "level": self.level, "xp": self.xp,
            "xp_for_next_level": self.get_xp_for_next_level(),
            "unabsorbed_xp": self.unabsorbed_xp,
            "stats": self.stats, "inventory_count": len(self.inventory),
            "encumbrance": self.encumbrance_val,
            "capacity": capacity if capacity is not None else self.get_encumbrance_capacity(),
        }
