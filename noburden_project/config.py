# --- FILE DIRECTORY ---
# noburden_project/
#├── main.py                   # Main application script (Flask, SocketIO setup, game loop start)
#├── config.py                 # Server constants, database configuration, NoBurden defaults
#|
#├── burden/                   # NoBurden plugin core
#│   ├── threshold_store.py    # Current burden threshold (the only shared config value)
#│   ├── crossing_detector.py  # Per-player below-threshold cache, crossing detection
#│   ├── capacity_override.py  # Capacity / encumbrance overrides for low-level players
#│   ├── notifications.py      # Burden warning text and delivery
#│   ├── settings.py           # Settings.json load/save and file watcher
#│   ├── plugin.py             # Wires the above into host login/logout/level-up hooks
#│   └── commands.py           # nbreload / nblimit / nbdefault / nbstatus
#|
#├── database/                 # Database interaction logic
#│   ├── connection.py         # MongoDB connection setup (connect_to_mongo, get_db)
#│   ├── player_handler.py     # Saving/loading player data
#│   └── observation_handler.py# Persisted below-threshold levels for offline characters
#|
#└── classes/                  # Game entity classes
#    └── player.py             # Player class definition

# noburden_project/config.py

# --- General MUD Configuration ---
MUD_NAME = "Whispers in the Dark"
WELCOME_MESSAGE = "From the swirling mists of unbeing, a consciousness stirs..."

# --- Server Configuration ---
HOST = '0.0.0.0'
PORT = 8024
SECRET_KEY = 'your_very_secret_key_here!' # IMPORTANT: Change this for production
DEBUG_MODE_FLASK = False
FLASK_USE_RELOADER = False
FALLBACK_INDEX_HTML = "<html><body><h1>NoBurden test server</h1><p>Client not found.</p></body></html>"

# --- DATABASE CONFIGURATION ---
MONGODB_URI = "mongodb://localhost:27017/"
DATABASE_NAME = "whispers_game"
PLAYERS_COLLECTION = "players"
MONGO_SERVER_SELECTION_TIMEOUT_MS = 5000

# --- DEBUGGING GRANULARITY ---
DEBUG_MODE = True
SEND_CLIENT_TICK_MARKERS = False

# --- GAME TICK INTERVALS ---
TICK_INTERVAL_SECONDS = 6  # Seconds per game tick

# --- CREATION ---
MIN_CHAR_NAME_LENGTH = 3
MAX_CHAR_NAME_LENGTH = 32
DEFAULT_STAT_VALUE = 10
STAT_CATEGORIES = {
    "physical": ["strength", "stamina", "dexterity", "agility", "constitution"],
    "mental": ["charisma", "intelligence", "wisdom", "logic", "perception"],
    "spiritual": ["aura", "willpower"]
}
ALL_STATS_ORDERED = STAT_CATEGORIES["physical"] + STAT_CATEGORIES["mental"] + STAT_CATEGORIES["spiritual"]
MAX_PLAYER_LEVEL = 275

# --- EXPERIENCE ---
XP_ABSORPTION_TICKS = max(1, round(30 / TICK_INTERVAL_SECONDS)) # Approx 30 real seconds
XP_LEVEL_THRESHOLDS = {2: 100, 3: 300, 4: 600, 5: 1000}
MIN_XP_ABSORBED_PER_EVENT = 1
XP_ABSORB_BASE_RATE = 19

# --- BURDEN (host stand-ins, not the retail formula) ---
CARRY_CAPACITY_PER_STRENGTH = 150
BURDEN_PER_INVENTORY_ITEM = 50

# --- NOBURDEN PLUGIN ---
# Characters below this level ignore burden. 0 = burden applies at all levels.
DEFAULT_BURDEN_THRESHOLD = 50
UNLIMITED_CAPACITY = 10000000
BURDEN_SETTINGS_FILE = "Settings.json"
BURDEN_SETTINGS_KEY = "ignore_burden_below_character_level"
BURDEN_WATCH_SETTINGS = True
BURDEN_WARNING_MESSAGE_TYPE = "warning_burden"
ADMIN_PLAYER_NAMES = ["Admin"]
