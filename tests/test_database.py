import pytest

from config import Settings
from database import JsonFileStorage, MemoryStorage, MongoStorage, ScopedStorage, get_storage


class FakeCollection:
    """Just enough of a pymongo collection for key/value documents."""

    def __init__(self):
        self.docs = {}

    def find_one(self, query):
        return self.docs.get(query["_id"])

    def update_one(self, query, update, upsert=False):
        doc = self.docs.get(query["_id"])
        if doc is None:
            if not upsert:
                return
            doc = self.docs[query["_id"]] = {"_id": query["_id"]}
        doc.update(update["$set"])

    def delete_one(self, query):
        self.docs.pop(query["_id"], None)


@pytest.fixture(params=["memory", "files", "mongo"])
def backend_storage(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    if request.param == "files":
        return JsonFileStorage(str(tmp_path / "state"))
    return MongoStorage(FakeCollection())


def test_get_set_delete(backend_storage):
    assert backend_storage.get("cart") is None
    backend_storage.set("cart", "[]")
    assert backend_storage.get("cart") == "[]"
    backend_storage.set("cart", '[{"quantity": 1}]')
    assert backend_storage.get("cart") == '[{"quantity": 1}]'
    backend_storage.delete("cart")
    assert backend_storage.get("cart") is None
    backend_storage.delete("cart")


def test_scoped_sessions_do_not_collide(backend_storage):
    a = ScopedStorage(backend_storage, "a1")
    b = ScopedStorage(backend_storage, "b2")
    a.set("cart", "A")
    b.set("cart", "B")
    assert a.get("cart") == "A"
    assert b.get("cart") == "B"
    assert backend_storage.get("a1:cart") == "A"
    a.delete("cart")
    assert b.get("cart") == "B"


def test_file_storage_escapes_keys(tmp_path):
    storage = JsonFileStorage(str(tmp_path))
    storage.set("../sid:cart", "x")
    assert storage.get("../sid:cart") == "x"
    assert [p.parent for p in tmp_path.iterdir()] == [tmp_path]


def test_mongo_records_update_time():
    collection = FakeCollection()
    MongoStorage(collection).set("wishlist", "[]")
    assert collection.docs["wishlist"]["value"] == "[]"
    assert "updated_at" in collection.docs["wishlist"]


def test_get_storage_selection(tmp_path):
    assert isinstance(get_storage(Settings(DATABASE_URL=None, STORAGE_DIR=None)), MemoryStorage)
    assert isinstance(get_storage(Settings(DATABASE_URL=None, STORAGE_DIR=str(tmp_path))), JsonFileStorage)
    mongo = get_storage(Settings(DATABASE_URL="mongodb://localhost:27017", DATABASE_NAME="shop_test"))
    assert isinstance(mongo, MongoStorage)
    assert mongo.collection.name == "storage"
    mongo.collection.database.client.close()
