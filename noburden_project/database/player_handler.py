# noburden_project/database/player_handler.py
import traceback # For detailed error logging

from bson import ObjectId # For handling MongoDB's _id
from pymongo.errors import PyMongoError

import config
from classes import player as player_class
from . import connection as db_connection


def save_player(player_object: player_class.Player) -> bool:
    """Saves player data to MongoDB."""
    if not player_object or not getattr(player_object, 'name', None):
        if config.DEBUG_MODE: print("DEBUG HANDLER ERROR: Invalid player object or player name for saving.")
        return False

    players_coll = db_connection.get_players_collection()
    if players_coll is None:
        if config.DEBUG_MODE: print(f"DEBUG HANDLER ERROR: Database connection not available. Cannot save player '{player_object.name}'.")
        return False

    player_data = player_object.to_dict()
    player_data["name_lower"] = player_object.name.lower()
    player_data.pop('sid', None)
    player_data.pop('db_id', None)

    try:
        if player_object.db_id:
            if config.DEBUG_MODE: print(f"DEBUG HANDLER: Updating player '{player_object.name}' by _id: {player_object.db_id}")
            players_coll.update_one({"_id": ObjectId(player_object.db_id)}, {"$set": player_data})
            return True

        if config.DEBUG_MODE: print(f"DEBUG HANDLER: Upserting player '{player_object.name}' by name_lower: {player_data['name_lower']}")
        result = players_coll.update_one(
            {"name_lower": player_data["name_lower"]},
            {"$set": player_data},
            upsert=True
        )
        if result.upserted_id:
            player_object.db_id = result.upserted_id
            if config.DEBUG_MODE: print(f"DEBUG HANDLER: New player '{player_object.name}' saved with _id {player_object.db_id}.")
        else:
            player_doc = players_coll.find_one({"name_lower": player_data["name_lower"]}, {"_id": 1})
            if player_doc and "_id" in player_doc:
                player_object.db_id = player_doc["_id"]
        return True
    except PyMongoError as e:
        print(f"ERROR HANDLER: Exception during save_player for '{player_object.name}': {e}")
        traceback.print_exc()
        return False


def load_player(player_name_lower, sid_on_load):
    players_coll = db_connection.get_players_collection()
    if players_coll is None:
        if config.DEBUG_MODE: print(f"DEBUG HANDLER: DB not available for loading player {player_name_lower}.")
        return None

    try:
        player_data_from_db = players_coll.find_one({"name_lower": player_name_lower})
    except PyMongoError as e:
        print(f"ERROR HANDLER: Could not query player {player_name_lower}: {e}")
        return None

    if not player_data_from_db:
        if config.DEBUG_MODE: print(f"DEBUG HANDLER: Player '{player_name_lower}' not found in database.")
        return None
    player_obj = player_class.Player.from_dict(player_data_from_db, sid_on_load)
    if config.DEBUG_MODE:
        print(f"DEBUG HANDLER: Player '{player_obj.name}' (SID: {sid_on_load}) loaded successfully.")
    return player_obj


def player_exists(player_name: str) -> bool:
    """Checks if a player exists in the database by name (case-insensitive)."""
    if not player_name:
        return False
    players_coll = db_connection.get_players_collection()
    if players_coll is None:
        if config.DEBUG_MODE: print(f"DEBUG HANDLER ERROR: Database connection not available. Cannot check if player '{player_name}' exists.")
        return False
    try:
        return players_coll.count_documents({"name_lower": player_name.lower()}) > 0
    except PyMongoError as e:
        print(f"ERROR HANDLER: Exception checking if player {player_name} exists: {e}")
        return False


def set_offline_level(player_name: str, new_level: int) -> bool:
    """Admin grant for a character that is not in the world. The level is applied when they next log in."""
    players_coll = db_connection.get_players_collection()
    if players_coll is None:
        print(f"ERROR HANDLER: Database connection not available. Cannot set level for '{player_name}'.")
        return False
    try:
        result = players_coll.update_one({"name_lower": player_name.lower()}, {"$set": {"level": new_level}})
    except PyMongoError as e:
        print(f"ERROR HANDLER: Exception setting level for {player_name}: {e}")
        return False
    if config.DEBUG_MODE:
        print(f"DEBUG HANDLER: set_offline_level '{player_name}' -> {new_level}. Matched: {result.matched_count}")
    return result.matched_count > 0
