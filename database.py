"""
Persistent store for the portal's record collections.

Every collection (users, tickets, ...) is stored as a whole JSON array
under its key. The first read of a key that holds nothing writes the
key's fallback collection and returns it; a value that cannot be decoded
is treated the same way. Writes replace the whole collection, so the
last write wins.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pymongo import MongoClient

from config import AppConfig
from errors import StorageCorruptError
from seed import demo_collections, empty_collections

logger = logging.getLogger(__name__)

MONGO_COLLECTION = "portal_store"


class CollectionStore:
    """Key -> collection store with fallback-seed-on-first-read."""

    backend = "abstract"

    def __init__(self, fallbacks: Optional[Mapping[str, List[Any]]] = None):
        self.fallbacks: Dict[str, List[Any]] = dict(fallbacks or {})

    def _read(self, key: str) -> Optional[Any]:
        """Return the decoded value for key, None when absent.

        Raises StorageCorruptError when a value exists but cannot be decoded.
        """
        raise NotImplementedError

    def _write(self, key: str, items: List[Any]) -> None:
        raise NotImplementedError

    def load(self, key: str, fallback: Optional[List[Any]] = None) -> List[Any]:
        if fallback is None:
            fallback = self.fallbacks.get(key, [])
        try:
            items = self._read(key)
            if items is not None:
                if not isinstance(items, list):
                    raise StorageCorruptError(key, "not a JSON array")
                return items
        except StorageCorruptError as exc:
            logger.warning("Reseeding collection %r: %s", key, exc)
        return self.reseed(key, fallback)

    def reseed(self, key: str, fallback: Optional[List[Any]] = None) -> List[Any]:
        """Overwrite key with its fallback collection and return a copy."""
        if fallback is None:
            fallback = self.fallbacks.get(key, [])
        seeded = copy.deepcopy(list(fallback))
        self.save(key, seeded)
        return copy.deepcopy(seeded)

    def save(self, key: str, items: Iterable[Any]) -> None:
        self._write(key, list(items))

    def health(self) -> Dict[str, Any]:
        return {"backend": self.backend, "status": "ok"}


class MemoryStore(CollectionStore):
    """Serialized JSON text per key, held in process memory."""

    backend = "memory"

    def __init__(self, fallbacks: Optional[Mapping[str, List[Any]]] = None):
        super().__init__(fallbacks)
        self._data: Dict[str, str] = {}

    def _read(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise StorageCorruptError(key, str(exc)) from exc

    def _write(self, key: str, items: List[Any]) -> None:
        self._data[key] = json.dumps(items)

    def put_raw(self, key: str, raw: str) -> None:
        """Store raw text under key as-is (used to simulate external edits)."""
        self._data[key] = raw


class JsonFileStore(CollectionStore):
    """One <key>.json file per collection inside a directory."""

    backend = "file"

    def __init__(self, directory: str, fallbacks: Optional[Mapping[str, List[Any]]] = None):
        super().__init__(fallbacks)
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        raw = path.read_bytes()
        if not raw.strip():
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            raise StorageCorruptError(key, str(exc)) from exc

    def _write(self, key: str, items: List[Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(items, indent=2), encoding="utf-8")
        os.replace(tmp, path)

    def health(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "status": "ok" if self.directory.exists() else "empty",
            "path": str(self.directory),
        }


class MongoStore(CollectionStore):
    """One document per key in a MongoDB collection: {"_id": key, "items": [...]}."""

    backend = "mongo"

    def __init__(self, database, fallbacks: Optional[Mapping[str, List[Any]]] = None):
        super().__init__(fallbacks)
        self.db = database
        self.collection = database[MONGO_COLLECTION]

    def _read(self, key: str) -> Optional[Any]:
        doc = self.collection.find_one({"_id": key})
        if doc is None:
            return None
        if "items" not in doc:
            raise StorageCorruptError(key, "document has no items")
        return doc["items"]

    def _write(self, key: str, items: List[Any]) -> None:
        self.collection.replace_one({"_id": key}, {"_id": key, "items": items}, upsert=True)

    def health(self) -> Dict[str, Any]:
        resp: Dict[str, Any] = {"backend": self.backend, "status": "not configured"}
        try:
            resp["collections"] = self.db.list_collection_names()
            resp["status"] = "connected"
        except Exception as e:
            resp["status"] = f"error: {str(e)[:80]}"
        return resp


def connect_mongo(database_url: str, database_name: str):
    client = MongoClient(database_url)
    return client[database_name]


def get_store(config: AppConfig) -> CollectionStore:
    """Build the store selected by the configuration."""
    store_config = config.store
    fallbacks = demo_collections() if store_config.seed_demo_data else empty_collections()

    if store_config.backend == "file":
        store: CollectionStore = JsonFileStore(store_config.path, fallbacks)
    elif store_config.backend == "mongo":
        db = connect_mongo(store_config.database_url, store_config.database_name)
        store = MongoStore(db, fallbacks)
    else:
        store = MemoryStore(fallbacks)

    logger.info("Using %s store", store.backend)
    return store
