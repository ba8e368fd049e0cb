from bson import ObjectId

import config
from classes.player import Player


def test_player_id_prefers_db_id():
    player = Player("sid-1", "Brannoc")
    assert player.player_id == "name:brannoc"
    oid = ObjectId()
    player.db_id = oid
    assert player.player_id == str(oid)


def test_hex_looking_name_keeps_name_identity():
    player = Player("sid-1", "AbcdefAbcdefAbcdefAbcdef")
    assert player.player_id == "name:abcdefabcdefabcdefabcdef"


def test_round_trip_keeps_identity_and_level():
    player = Player("sid-1", "Brannoc")
    player.db_id = ObjectId()
    player.level = 7
    restored = Player.from_dict(player.to_dict(), "sid-2")
    assert restored.player_id == player.player_id
    assert restored.level == 7
    assert restored.sid == "sid-2"


def test_absorb_xp_levels_up():
    player = Player("sid-1", "Brannoc")
    player.add_xp_to_pool(150)
    total_levels = 0
    while player.unabsorbed_xp:
        total_levels += player.absorb_xp()
    assert player.xp == 150
    assert player.level == 2
    assert total_levels == 1
    assert any(m["type"] == "level_up_major" for m in player.get_queued_messages())


def test_burden_stand_ins():
    player = Player("sid-1", "Brannoc")
    player.inventory = ["a", "b"]
    assert player.get_inventory_burden() == 2 * config.BURDEN_PER_INVENTORY_ITEM
    assert player.get_encumbrance_capacity() == config.DEFAULT_STAT_VALUE * config.CARRY_CAPACITY_PER_STRENGTH


def test_admin_flag(monkeypatch):
    monkeypatch.setattr(config, "ADMIN_PLAYER_NAMES", ["Brannoc"])
    assert Player("sid-1", "Brannoc").is_admin
    assert not Player("sid-2", "Cyra").is_admin
