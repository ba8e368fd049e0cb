# noburden_project/database/observation_handler.py
from bson import ObjectId
from pymongo.errors import PyMongoError

import config
from classes.player import NAME_ID_PREFIX
from . import connection as db_connection

OBSERVED_LEVEL_FIELD = "burden_observed_level"


def _player_filter(player_id):
    player_id = str(player_id)
    if player_id.startswith(NAME_ID_PREFIX):
        return {"name_lower": player_id[len(NAME_ID_PREFIX):].lower()}
    if ObjectId.is_valid(player_id):
        return {"_id": ObjectId(player_id)}
    if config.DEBUG_MODE: print(f"DEBUG OBSERVATIONS: Unrecognised player id '{player_id}', matching by name.")
    return {"name_lower": player_id.lower()}


class MongoObservationStore:
    """Keeps a logged-out character's last below-threshold level on their player document.

    Any database problem is printed and treated as "nothing stored", so a
    Mongo outage can cost a warning but never breaks login or logout.
    """

    def __init__(self, get_collection=None):
        self.get_collection = get_collection or db_connection.get_players_collection

    def load(self, player_id):
        players_coll = self.get_collection()
        if players_coll is None:
            if config.DEBUG_MODE: print(f"DEBUG OBSERVATIONS: DB not available, no stored level for {player_id}.")
            return None
        try:
            player_doc = players_coll.find_one(_player_filter(player_id), {OBSERVED_LEVEL_FIELD: 1})
        except PyMongoError as e:
            print(f"ERROR OBSERVATIONS: Could not load stored level for {player_id}: {e}")
            return None
        if not player_doc:
            return None
        level = player_doc.get(OBSERVED_LEVEL_FIELD)
        if isinstance(level, bool) or not isinstance(level, int):
            return None
        return level

    def save(self, player_id, level):
        players_coll = self.get_collection()
        if players_coll is None:
            print(f"ERROR OBSERVATIONS: DB not available, level {level} for {player_id} not stored.")
            return False
        try:
            result = players_coll.update_one(_player_filter(player_id), {"$set": {OBSERVED_LEVEL_FIELD: level}})
        except PyMongoError as e:
            print(f"ERROR OBSERVATIONS: Could not store level {level} for {player_id}: {e}")
            return False
        if config.DEBUG_MODE:
            print(f"DEBUG OBSERVATIONS: Stored level {level} for {player_id}. Matched: {result.matched_count}")
        return result.matched_count > 0

    def clear(self, player_id):
        players_coll = self.get_collection()
        if players_coll is None:
            return False
        try:
            players_coll.update_one(_player_filter(player_id), {"$unset": {OBSERVED_LEVEL_FIELD: ""}})
        except PyMongoError as e:
            print(f"ERROR OBSERVATIONS: Could not clear stored level for {player_id}: {e}")
            return False
        return True
