# noburden_project/database/connection.py
from pymongo import MongoClient
from pymongo.errors import PyMongoError

import config

client = None
db = None


def connect_to_mongo():
    global client, db
    if db is not None:
        if config.DEBUG_MODE: print("MongoDB connection already established.")
        return db

    mongo_uri = getattr(config, 'MONGODB_URI', "mongodb://localhost:27017/")
    database_name = getattr(config, 'DATABASE_NAME', 'whispers_game')
    timeout_ms = getattr(config, 'MONGO_SERVER_SELECTION_TIMEOUT_MS', 5000)

    try:
        if config.DEBUG_MODE: print(f"Attempting to connect to MongoDB at {mongo_uri}...")
        client = MongoClient(mongo_uri, serverSelectionTimeoutMS=timeout_ms)
        client.admin.command('ping') # Verify connection
        db = client[database_name]
        if config.DEBUG_MODE: print(f"Successfully connected to MongoDB. Database: '{database_name}'")
        return db
    except PyMongoError as e:
        print(f"ERROR: Could not connect to MongoDB at {mongo_uri}. Check if MongoDB is running. Error: {e}")
        # The server keeps running; players simply cannot be loaded or saved.
        db = None
        return None


def get_db():
    if db is None:
        print("WARNING (get_db): Database connection is None. Attempting to reconnect...")
        connect_to_mongo()
    if db is None and config.DEBUG_MODE:
        print("CRITICAL (get_db): Database is still None after attempting connection. Operations requiring DB will likely fail.")
    return db


def get_players_collection():
    database = get_db()
    if database is None:
        return None
    return database[config.PLAYERS_COLLECTION]


def close_mongo_connection():
    global client, db
    if client:
        client.close()
        if config.DEBUG_MODE: print("MongoDB connection closed.")
        client = None
        db = None
