# noburden_project/main.py
import os
import sys
import time
import threading
import traceback
import datetime
import pytz

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, render_template, request
from flask_socketio import SocketIO, emit, disconnect

try:
    import config
    from database import connection as db_connection
    from database import player_handler
    from database.observation_handler import MongoObservationStore
    from classes import player as player_class
    from burden.plugin import NoBurdenPlugin
    from burden.commands import ADMIN_COMMANDS, handle_admin_command
except ImportError as e:
    print(f"ERROR: Critical module import failed: {e}")
    traceback.print_exc()
    sys.exit(1)

app = Flask(__name__)
app.config['SECRET_KEY'] = config.SECRET_KEY
socketio = SocketIO(app, async_mode='threading')

active_players = {}

game_tick_counter = 0
game_loop_active = True


def find_active_player(player_id):
    for player_obj in list(active_players.values()):
        if player_obj.player_id == player_id:
            return player_obj
    return None


def find_active_player_by_name(name):
    name_lower = name.lower()
    for player_obj in list(active_players.values()):
        if player_obj.name.lower() == name_lower:
            return player_obj
    return None


plugin = NoBurdenPlugin(
    settings_path=getattr(config, 'BURDEN_SETTINGS_FILE', "Settings.json"),
    lookup_player=find_active_player,
    offline_store=MongoObservationStore(),
)


def flush_messages(player_object: player_class.Player):
    messages = player_object.get_queued_messages()
    if messages and player_object.sid:
        socketio.emit('game_messages', {'messages': messages}, room=player_object.sid)


def send_player_stats_update(player_object: player_class.Player):
    if player_object and player_object.sid:
        try:
            client_data = {"raw_stats": player_object.get_client_data(plugin.effective_capacity(player_object))}
            socketio.emit('stats_update', client_data, room=player_object.sid)
        except Exception as e:
            print(f"Error sending stats update for SID {player_object.sid}: {e}")


def update_player_encumbrance(player_object: player_class.Player):
    player_object.encumbrance_val = plugin.applied_encumbrance(player_object, player_object.get_inventory_burden())


def handle_level_change(player_object: player_class.Player):
    """Everything that has to happen after a player's level moved."""
    plugin.on_level_change(player_object)
    update_player_encumbrance(player_object)
    send_player_stats_update(player_object)


def game_tick_loop():
    global game_tick_counter

    local_tz = pytz.utc
    if config.DEBUG_MODE and game_tick_counter == 0:
        print(f"Game tick loop started at {datetime.datetime.now(local_tz).strftime('%Y-%m-%d %H:%M:%S %Z')}")

    while game_loop_active:
        current_tick_start_time = time.monotonic()
        datetime_utc_now_for_log = datetime.datetime.now(tz=pytz.utc)
        log_time_prefix = f"[{datetime_utc_now_for_log.strftime('%Y-%m-%d %H:%M:%S %Z')}] TICK {game_tick_counter}"
        game_tick_counter += 1

        xp_absorption_interval_ticks = getattr(config, 'XP_ABSORPTION_TICKS', 5)
        for sid_player_process in list(active_players.keys()):
            player_obj_process = active_players.get(sid_player_process)
            if not player_obj_process:
                continue

            if game_tick_counter % xp_absorption_interval_ticks == 0 and player_obj_process.unabsorbed_xp > 0:
                levels_gained = player_obj_process.absorb_xp()
                if levels_gained:
                    if config.DEBUG_MODE: print(f"{log_time_prefix} - LEVEL_UP: Player {player_obj_process.name} reached level {player_obj_process.level}.")
                    handle_level_change(player_obj_process)

            if getattr(config, 'SEND_CLIENT_TICK_MARKERS', False):
                player_obj_process.add_message(">", "system_tick_marker")

            flush_messages(player_obj_process)

        processing_time = time.monotonic() - current_tick_start_time
        sleep_time = getattr(config, 'TICK_INTERVAL_SECONDS', 6.0) - processing_time
        if sleep_time > 0: socketio.sleep(sleep_time)
        else:
            if config.DEBUG_MODE: print(f"{log_time_prefix} - WARNING: Tick processing ({processing_time:.3f}s) exceeded interval.")
            socketio.sleep(0.001)

    if config.DEBUG_MODE: print(f"Game tick loop stopped at {datetime.datetime.now(local_tz).strftime('%Y-%m-%d %H:%M:%S %Z')}")


def enter_world(sid, player_object: player_class.Player, welcome_text):
    active_players[sid] = player_object
    player_object.add_message(welcome_text, "event_highlight")
    plugin.on_player_login(player_object)
    update_player_encumbrance(player_object)
    flush_messages(player_object)
    send_player_stats_update(player_object)


def leave_world(sid):
    player = active_players.pop(sid, None)
    if not player:
        return None
    if not player_handler.save_player(player): print(f"ERROR: Save failed for {player.name} ({sid}).")
    elif config.DEBUG_MODE: print(f"DEBUG: Player {player.name} ({sid}) data saved.")
    plugin.on_player_logout(player)
    return player


@socketio.on('connect')
def handle_connect():
    sid = request.sid
    if config.DEBUG_MODE: print(f"DEBUG: Client connected: SID {sid}")
    emit('game_messages', {'messages': [{"text": getattr(config, 'WELCOME_MESSAGE', "Welcome!"), "type": "system_highlight"},
                                        {"text": "Enter 'login <name>' or 'create <name>'", "type": "prompt"}]}, room=sid)


@socketio.on('disconnect')
def handle_disconnect():
    sid = request.sid
    player = leave_world(sid)
    if player and config.DEBUG_MODE: print(f"DEBUG: Player '{player.name}' ({sid}) removed from active players.")


def handle_login_command(sid, command_input):
    parts = command_input.split(" ", 1); verb = parts[0].lower()
    name_arg = parts[1].strip().title() if len(parts) > 1 and parts[1].strip() else ""

    if verb == "login" and name_arg:
        if find_active_player_by_name(name_arg):
            return [{"text": f"{name_arg} is already in the world.", "type": "error", "prompt": True}]
        loaded_player = player_handler.load_player(name_arg.lower(), sid)
        if not loaded_player:
            return [{"text": f"Character '{name_arg}' not found.", "type": "error", "prompt": True}]
        enter_world(sid, loaded_player, f"Welcome back to {config.MUD_NAME}, {loaded_player.name}!")
        return []

    if verb == "create" and name_arg:
        min_len = getattr(config, 'MIN_CHAR_NAME_LENGTH', 3)
        max_len = getattr(config, 'MAX_CHAR_NAME_LENGTH', 20)
        is_valid_name_format = all(c.isalpha() or c.isspace() for c in name_arg) and any(c.isalpha() for c in name_arg)
        if not (min_len <= len(name_arg) <= max_len and is_valid_name_format):
            return [{"text": f"A name must be between {min_len} and {max_len} characters, containing only letters and spaces.", "type": "error", "prompt": True}]
        if player_handler.player_exists(name_arg):
            return [{"text": f"The name '{name_arg}' is already taken. Choose another.", "type": "error", "prompt": True}]
        new_player = player_class.Player(sid, name_arg)
        if not player_handler.save_player(new_player):
            return [{"text": "A critical error occurred saving your character.", "type": "error_critical"}]
        enter_world(sid, new_player, f"Character {new_player.name} created successfully!")
        return []

    return [{"text": "Please use 'login <name>' or 'create <name>'.", "type": "prompt"}]


def handle_grant_level(player, target_arg):
    args = (target_arg or "").split()
    if len(args) != 2:
        player.add_message("Usage: grantlevel <name> <level>", "error")
        return
    target_name, level_text = args
    try:
        new_level = int(level_text)
    except ValueError:
        player.add_message(f"'{level_text}' is not a level.", "error")
        return
    if not 1 <= new_level <= getattr(config, 'MAX_PLAYER_LEVEL', 275):
        player.add_message(f"Level must be between 1 and {getattr(config, 'MAX_PLAYER_LEVEL', 275)}.", "error")
        return

    target = find_active_player_by_name(target_name)
    if target:
        target.level = new_level
        target.add_message(f"You have been granted level {new_level}.", "event_highlight")
        handle_level_change(target)
        player_handler.save_player(target)
        if target is not player: flush_messages(target)
        player.add_message(f"{target.name} is now level {new_level}.", "feedback_highlight")
    elif player_handler.set_offline_level(target_name, new_level):
        player.add_message(f"{target_name.title()} is not in the world; level {new_level} will apply at their next login.", "feedback_highlight")
    else:
        player.add_message(f"Character '{target_name}' not found.", "error")
    print(f"NOBURDEN: {player.name} granted level {new_level} to {target_name}.")


@socketio.on('player_command')
def handle_player_command(data):
    sid = request.sid
    command_input = (data or {}).get('command', '').strip()
    if config.DEBUG_MODE: print(f"\nDEBUG CMD: SID={sid}, Command='{command_input}'")
    if not command_input: return

    try:
        player = active_players.get(sid)
        if not player:
            messages = handle_login_command(sid, command_input)
            if messages: emit('game_messages', {'messages': messages}, room=sid)
            return

        player.add_message(f"> {command_input}", "echo")
        parts = command_input.split(" ", 1)
        verb = parts[0].lower()
        target_arg = parts[1].strip() if len(parts) > 1 else None

        if verb in ("quit", "logout"):
            player.add_message("You fade from the world.", "event_highlight")
            flush_messages(player)
            leave_world(sid)
            disconnect()
            return

        elif verb in ("stats", "score"):
            send_player_stats_update(player)
            player.add_message(f"Level: {player.level}", "info_block_content")
            for stat_key in config.ALL_STATS_ORDERED:
                player.add_message(f"{stat_key.title()}: {player.stats.get(stat_key, 0)}", "info_block_content")

        elif verb in ("experience", "exp"):
            player.add_message(f"Level: {player.level}", "info_block_content")
            player.add_message(f"Current XP: {player.xp}", "info_block_content")
            player.add_message(f"XP to Next Level: {player.get_xp_for_next_level()}", "info_block_content")
            player.add_message(f"Unabsorbed XP Pool: {player.unabsorbed_xp}", "info_block_content")

        elif verb == "burden":
            update_player_encumbrance(player)
            threshold = plugin.threshold_store.get()
            if plugin.is_burden_ignored(player):
                player.add_message(f"You carry your load with ease. Burden will apply from level {threshold}.", "feedback_highlight")
            else:
                player.add_message(f"Burden: {player.encumbrance_val} / {plugin.effective_capacity(player)}", "feedback_highlight")

        elif verb == "help":
            player.add_message("Commands: stats, experience, burden, quit", "system_info")
            if player.is_admin:
                player.add_message("Admin: grantlevel <name> <level>, grantxp <amount>, " + ", ".join(ADMIN_COMMANDS), "system_info")

        elif player.is_admin and verb == "grantlevel":
            handle_grant_level(player, target_arg)

        elif player.is_admin and verb == "grantxp":
            try:
                player.add_xp_to_pool(int(target_arg or ""))
            except ValueError:
                player.add_message("Usage: grantxp <amount>", "error")

        elif player.is_admin and verb in ADMIN_COMMANDS:
            feedback = handle_admin_command(plugin, verb, target_arg)
            player.add_message(feedback, "feedback_highlight")
            print(feedback)

        else:
            player.add_message(f"You can't seem to '{command_input}' here. (Type 'help' for commands)", "error")
            flush_messages(player)
            return

        flush_messages(player)

    except Exception:
        print(f"!!! UNHANDLED EXCEPTION IN handle_player_command for SID {sid}, Command: '{command_input}' !!!")
        traceback.print_exc()
        try:
            socketio.emit('game_messages', {'messages': [{"text": "A critical server error occurred. Your command may not have been processed.", "type": "error_critical"}]}, room=sid)
        except Exception as e_emit:
            print(f"CRITICAL: Error emitting critical error message to client {sid}: {e_emit}")


@app.route('/')
def index_page():
    return render_template('index.html')


if __name__ == '__main__':
    if not os.path.exists('templates'): os.makedirs('templates')
    if not os.path.exists('templates/index.html'):
        with open('templates/index.html', 'w') as f: f.write(getattr(config, 'FALLBACK_INDEX_HTML', "HTML Fallback: Client not found."))
        print("WARNING: templates/index.html not found. Created a basic placeholder.")

    mud_name = getattr(config, 'MUD_NAME', 'MUD Server'); print(f"Starting {mud_name} with NoBurden...")
    db_connection.connect_to_mongo()
    plugin.start()

    print("Starting game tick loop...")
    game_tick_thread = threading.Thread(target=game_tick_loop, name="GameTickLoop")
    game_tick_thread.daemon = True
    game_tick_thread.start()

    host_ip = getattr(config, 'HOST', '0.0.0.0')
    port_num = int(getattr(config, 'PORT', 8024))
    debug_flask = getattr(config, 'DEBUG_MODE_FLASK', False)
    use_reloader_flask = getattr(config, 'FLASK_USE_RELOADER', False) and debug_flask
    print(f"MUD server on http://{host_ip}:{port_num} (Flask Debug: {'ON' if debug_flask else 'OFF'}, Reloader: {'ON' if use_reloader_flask else 'OFF'})")

    try:
        socketio.run(app, host=host_ip, port=port_num, debug=debug_flask, use_reloader=use_reloader_flask, allow_unsafe_werkzeug=True)
    except KeyboardInterrupt:
        print("\nServer shutting down (KeyboardInterrupt)...")
    finally:
        print("Attempting graceful shutdown...")
        game_loop_active = False
        if game_tick_thread.is_alive():
            game_tick_thread.join(timeout=float(getattr(config, 'TICK_INTERVAL_SECONDS', 6.0)) + 2.0)
            if game_tick_thread.is_alive():
                print("Warning: Game tick loop did not terminate cleanly.")

        if active_players:
            print(f"Saving data for {len(active_players)} active player(s)...")
            for sid_s in list(active_players.keys()):
                leave_world(sid_s)

        plugin.stop()
        db_connection.close_mongo_connection()
