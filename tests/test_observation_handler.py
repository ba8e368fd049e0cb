from unittest.mock import MagicMock

from bson import ObjectId
from pymongo.errors import PyMongoError

from burden.crossing_detector import CrossingDetector
from burden.threshold_store import ThresholdStore
from database.observation_handler import OBSERVED_LEVEL_FIELD, MongoObservationStore


def make_store(collection):
    return MongoObservationStore(get_collection=lambda: collection)


class TestMongoObservationStore:
    def test_load_by_object_id(self):
        oid = ObjectId()
        players_coll = MagicMock()
        players_coll.find_one.return_value = {"_id": oid, OBSERVED_LEVEL_FIELD: 8}
        assert make_store(players_coll).load(str(oid)) == 8
        players_coll.find_one.assert_called_once_with({"_id": oid}, {OBSERVED_LEVEL_FIELD: 1})

    def test_load_by_prefixed_name(self):
        players_coll = MagicMock()
        players_coll.find_one.return_value = None
        assert make_store(players_coll).load("name:Brannoc") is None
        players_coll.find_one.assert_called_once_with({"name_lower": "brannoc"}, {OBSERVED_LEVEL_FIELD: 1})

    def test_hex_looking_name_is_not_read_as_object_id(self):
        name = "abcdefabcdefabcdefabcdef"
        assert ObjectId.is_valid(name)
        players_coll = MagicMock()
        players_coll.find_one.return_value = {OBSERVED_LEVEL_FIELD: 4}
        assert make_store(players_coll).load(f"name:{name}") == 4
        players_coll.find_one.assert_called_once_with({"name_lower": name}, {OBSERVED_LEVEL_FIELD: 1})

    def test_load_ignores_garbage_value(self):
        players_coll = MagicMock()
        players_coll.find_one.return_value = {OBSERVED_LEVEL_FIELD: "eight"}
        assert make_store(players_coll).load("name:brannoc") is None

    def test_save_and_clear(self):
        players_coll = MagicMock()
        players_coll.update_one.return_value.matched_count = 1
        store = make_store(players_coll)
        assert store.save("name:brannoc", 7) is True
        players_coll.update_one.assert_called_with({"name_lower": "brannoc"}, {"$set": {OBSERVED_LEVEL_FIELD: 7}})
        assert store.clear("name:brannoc") is True
        players_coll.update_one.assert_called_with({"name_lower": "brannoc"}, {"$unset": {OBSERVED_LEVEL_FIELD: ""}})

    def test_database_unavailable(self):
        store = make_store(None)
        assert store.load("name:brannoc") is None
        assert store.save("name:brannoc", 7) is False
        assert store.clear("name:brannoc") is False

    def test_database_errors_do_not_raise(self):
        players_coll = MagicMock()
        players_coll.find_one.side_effect = PyMongoError("down")
        players_coll.update_one.side_effect = PyMongoError("down")
        store = make_store(players_coll)
        assert store.load("name:brannoc") is None
        assert store.save("name:brannoc", 7) is False
        assert store.clear("name:brannoc") is False

    def test_detector_login_with_mongo_store(self):
        """A level stored at logout produces the warning at the next login and is then unset."""
        players_coll = MagicMock()
        players_coll.find_one.return_value = {OBSERVED_LEVEL_FIELD: 8}
        detector = CrossingDetector(ThresholdStore(10), make_store(players_coll))
        event = detector.on_login("name:brannoc", 12)
        assert event.new_level == 12
        players_coll.update_one.assert_called_once_with({"name_lower": "brannoc"}, {"$unset": {OBSERVED_LEVEL_FIELD: ""}})
