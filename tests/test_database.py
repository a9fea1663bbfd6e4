"""Tests for the persistent store backends."""

import json

import database
from config import AppConfig
from database import JsonFileStore, MemoryStore, MongoStore


class FakeCollection:
    def __init__(self):
        self.docs = {}

    def find_one(self, query):
        doc = self.docs.get(query["_id"])
        return dict(doc) if doc is not None else None

    def replace_one(self, query, doc, upsert=False):
        assert upsert
        self.docs[query["_id"]] = json.loads(json.dumps(doc))


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())

    def list_collection_names(self):
        return list(self.collections)


SAMPLE = [{"id": "a", "tags": ["x", "y"], "nested": {"n": 1}}, {"id": "b", "value": None}]


def test_memory_round_trip():
    store = MemoryStore()
    store.save("tickets", SAMPLE)
    assert store.load("tickets") == SAMPLE


def test_first_read_seeds_and_persists_fallback():
    store = MemoryStore({"tutorials": [{"id": "t1"}]})
    assert store.load("tutorials") == [{"id": "t1"}]
    # seeded value is now stored, a different fallback no longer applies
    assert store.load("tutorials", fallback=[{"id": "other"}]) == [{"id": "t1"}]


def test_unknown_key_without_fallback_is_empty():
    store = MemoryStore()
    assert store.load("notifications") == []


def test_corrupt_value_is_reseeded(caplog):
    store = MemoryStore({"users": [{"id": "u1"}]})
    store.put_raw("users", "{not json")
    assert store.load("users") == [{"id": "u1"}]
    assert "Reseeding" in caplog.text


def test_non_list_value_is_reseeded():
    store = MemoryStore({"users": [{"id": "u1"}]})
    store.put_raw("users", json.dumps({"id": "u1"}))
    assert store.load("users") == [{"id": "u1"}]


def test_stored_empty_collection_is_kept():
    store = MemoryStore({"users": [{"id": "u1"}]})
    store.save("users", [])
    assert store.load("users") == []


def test_loaded_value_is_a_copy():
    store = MemoryStore()
    store.save("tickets", SAMPLE)
    loaded = store.load("tickets")
    loaded[0]["tags"].append("z")
    assert store.load("tickets") == SAMPLE


def test_file_store_round_trip(tmp_path):
    store = JsonFileStore(str(tmp_path / "data"))
    store.save("tickets", SAMPLE)
    assert (tmp_path / "data" / "tickets.json").exists()
    assert JsonFileStore(str(tmp_path / "data")).load("tickets") == SAMPLE


def test_file_store_reseeds_corrupt_file(tmp_path):
    (tmp_path / "users.json").write_text("[{broken", encoding="utf-8")
    store = JsonFileStore(str(tmp_path), {"users": [{"id": "u1"}]})
    assert store.load("users") == [{"id": "u1"}]
    assert json.loads((tmp_path / "users.json").read_text(encoding="utf-8")) == [{"id": "u1"}]


def test_mongo_store_round_trip_and_seed():
    db = FakeDatabase()
    store = MongoStore(db, {"tutorials": [{"id": "t1"}]})
    assert store.load("tutorials") == [{"id": "t1"}]
    store.save("tickets", SAMPLE)
    assert store.load("tickets") == SAMPLE
    assert store.health()["status"] == "connected"


def test_mongo_store_reseeds_document_without_items():
    db = FakeDatabase()
    db["portal_store"].docs["users"] = {"_id": "users"}
    store = MongoStore(db, {"users": [{"id": "u1"}]})
    assert store.load("users") == [{"id": "u1"}]


def test_reseed_overwrites_valid_value():
    store = MemoryStore({"users": [{"id": "u1"}]})
    store.save("users", [{"id": "u2"}])
    assert store.reseed("users") == [{"id": "u1"}]
    assert store.load("users") == [{"id": "u1"}]


def test_get_store_uses_connected_mongo_handle(monkeypatch):
    db = FakeDatabase()
    calls = []

    def fake_connect(url, name):
        calls.append((url, name))
        return db

    monkeypatch.setenv("STORE_BACKEND", "mongo")
    monkeypatch.setenv("DATABASE_URL", "mongodb://localhost:27017")
    monkeypatch.setenv("DATABASE_NAME", "portal_test")
    monkeypatch.setattr(database, "connect_mongo", fake_connect)

    store = database.get_store(AppConfig.from_env())
    assert isinstance(store, MongoStore)
    assert calls == [("mongodb://localhost:27017", "portal_test")]
    assert store.db is db
