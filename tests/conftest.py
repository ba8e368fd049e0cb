import pytest

from burden.crossing_detector import CrossingDetector, MemoryObservationStore
from burden.plugin import NoBurdenPlugin
from burden.threshold_store import ThresholdStore
from classes.player import Player


@pytest.fixture
def threshold_store():
    return ThresholdStore(10)


@pytest.fixture
def detector(threshold_store):
    return CrossingDetector(threshold_store, MemoryObservationStore())


@pytest.fixture
def settings_path(tmp_path):
    return str(tmp_path / "Settings.json")


@pytest.fixture
def online_players():
    return {}


@pytest.fixture
def plugin(settings_path, online_players):
    return NoBurdenPlugin(settings_path=settings_path,
                          lookup_player=online_players.get,
                          offline_store=MemoryObservationStore(),
                          watch_settings=False)


@pytest.fixture
def make_player(online_players):
    def _make(name="Tester", level=1, online=True):
        player = Player(f"sid-{name.lower()}" if online else None, name)
        player.level = level
        if online:
            online_players[player.player_id] = player
        return player
    return _make
