"""
Durable key/value storage for session state.

Values are JSON text stored under a fixed key, the same way a browser keeps
them in local storage. A missing key reads back as ``None``.
"""
import os
from datetime import datetime, timezone
from typing import Dict, Optional
from urllib.parse import quote

from pymongo import MongoClient

from config import Settings


class MemoryStorage:
    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """One file per key under ``root``."""

    def __init__(self, root: str):
        self.root = root
        os.makedirs(root, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.root, quote(key, safe="") + ".json")

    def get(self, key: str) -> Optional[str]:
        try:
            with open(self._path(key), encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        with open(self._path(key), "w", encoding="utf-8") as f:
            f.write(value)

    def delete(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass


class MongoStorage:
    """Keys are document ids in a single collection."""

    def __init__(self, collection):
        self.collection = collection

    @classmethod
    def from_url(cls, url: str, database: str, collection: str = "storage") -> "MongoStorage":
        client = MongoClient(url)
        return cls(client[database][collection])

    def get(self, key: str) -> Optional[str]:
        doc = self.collection.find_one({"_id": key})
        return doc.get("value") if doc else None

    def set(self, key: str, value: str) -> None:
        self.collection.update_one(
            {"_id": key},
            {"$set": {"value": value, "updated_at": datetime.now(timezone.utc)}},
            upsert=True,
        )

    def delete(self, key: str) -> None:
        self.collection.delete_one({"_id": key})


class ScopedStorage:
    """Prefixes every key so several sessions can share one backend."""

    def __init__(self, storage, scope: str):
        self.storage = storage
        self.scope = scope

    def _key(self, key: str) -> str:
        return f"{self.scope}:{key}"

    def get(self, key: str) -> Optional[str]:
        return self.storage.get(self._key(key))

    def set(self, key: str, value: str) -> None:
        self.storage.set(self._key(key), value)

    def delete(self, key: str) -> None:
        self.storage.delete(self._key(key))


def get_storage(settings: Settings):
    if settings.DATABASE_URL:
        return MongoStorage.from_url(settings.DATABASE_URL, settings.DATABASE_NAME)
    if settings.STORAGE_DIR:
        return JsonFileStorage(settings.STORAGE_DIR)
    return MemoryStorage()
