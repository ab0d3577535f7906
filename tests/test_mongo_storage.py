"""Unit tests for the MongoDB recipe store against a mocked collection."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import bson
import pytest
from bson import ObjectId
from bson.codec_options import CodecOptions
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from models.recipe import RecipeIn, utc_now
from storage.base import RecipeNotFound, StorageError
from storage.mongo_storage import MongoRecipeStore, tag_filter

PUBLISHED = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def make_doc(oid=None, name="Carbonara", tags=("Italian", "Pasta")):
    return {
        "_id": oid or ObjectId(),
        "name": name,
        "tags": list(tags),
        "ingredients": ["Eggs"],
        "instructions": ["Boil pasta"],
        "publishedAt": PUBLISHED,
    }


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def mongo_store(collection):
    return MongoRecipeStore(collection)


class TestCreate:

    def test_inserts_document_with_object_id(self, mongo_store, collection):
        before = utc_now()
        created = mongo_store.create(RecipeIn(name="Tea", tags=["Drink"]))

        doc = collection.insert_one.call_args.args[0]
        assert isinstance(doc["_id"], ObjectId)
        assert str(doc["_id"]) == created.id
        assert "id" not in doc
        assert doc["name"] == "Tea"
        assert doc["tags"] == ["Drink"]
        assert doc["publishedAt"] == created.published_at
        assert created.published_at >= before

    def test_driver_failure_is_storage_error(self, mongo_store, collection):
        collection.insert_one.side_effect = PyMongoError("down")
        with pytest.raises(StorageError):
            mongo_store.create(RecipeIn(name="Tea"))


class TestQueries:

    def test_list_converts_documents(self, mongo_store, collection):
        oid = ObjectId()
        collection.find.return_value = [make_doc(oid)]

        recipes = mongo_store.list()

        collection.find.assert_called_once_with({})
        assert len(recipes) == 1
        assert recipes[0].id == str(oid)
        assert recipes[0].published_at == PUBLISHED

    def test_list_empty(self, mongo_store, collection):
        collection.find.return_value = []
        assert mongo_store.list() == []

    def test_find_by_tag_uses_exact_case_insensitive_filter(self, mongo_store, collection):
        collection.find.return_value = []
        mongo_store.find_by_tag("italian")
        collection.find.assert_called_once_with(
            {"tags": {"$regex": r"\Aitalian\z", "$options": "i"}}
        )

    def test_tag_filter_escapes_regex_characters(self):
        assert tag_filter("c++")["tags"]["$regex"] == r"\Ac\+\+\z"
        assert tag_filter("")["tags"]["$regex"] == r"\A\z"

    def test_query_failure_is_storage_error(self, mongo_store, collection):
        collection.find.side_effect = ServerSelectionTimeoutError("timeout")
        with pytest.raises(StorageError):
            mongo_store.list()

    def test_get_missing(self, mongo_store, collection):
        collection.find_one.return_value = None
        with pytest.raises(RecipeNotFound):
            mongo_store.get(str(ObjectId()))


class TestUpdate:

    def test_sets_only_mutable_fields(self, mongo_store, collection):
        oid = ObjectId()
        collection.find_one_and_update.return_value = make_doc(oid, name="Amatriciana", tags=["Roman"])
        body = RecipeIn.model_validate({
            "id": "ignored",
            "publishedAt": "1999-01-01T00:00:00Z",
            "name": "Amatriciana",
            "tags": ["Roman"],
        })

        updated = mongo_store.update(str(oid), body)

        query, change = collection.find_one_and_update.call_args.args
        assert query == {"_id": oid}
        assert change == {"$set": {
            "name": "Amatriciana",
            "tags": ["Roman"],
            "ingredients": [],
            "instructions": [],
        }}
        assert collection.find_one_and_update.call_args.kwargs["return_document"] is ReturnDocument.AFTER
        assert updated.id == str(oid)
        assert updated.published_at == PUBLISHED

    def test_unknown_id(self, mongo_store, collection):
        collection.find_one_and_update.return_value = None
        with pytest.raises(RecipeNotFound):
            mongo_store.update(str(ObjectId()), RecipeIn(name="x"))

    def test_malformed_id_is_not_found(self, mongo_store, collection):
        with pytest.raises(RecipeNotFound):
            mongo_store.update("not-an-object-id", RecipeIn(name="x"))
        collection.find_one_and_update.assert_not_called()


class TestDelete:

    def test_deletes_by_object_id(self, mongo_store, collection):
        oid = ObjectId()
        collection.delete_one.return_value = MagicMock(deleted_count=1)
        mongo_store.delete(str(oid))
        collection.delete_one.assert_called_once_with({"_id": oid})

    def test_nothing_deleted(self, mongo_store, collection):
        collection.delete_one.return_value = MagicMock(deleted_count=0)
        with pytest.raises(RecipeNotFound):
            mongo_store.delete(str(ObjectId()))

    def test_malformed_id_is_not_found(self, mongo_store, collection):
        with pytest.raises(RecipeNotFound):
            mongo_store.delete("1234")
        collection.delete_one.assert_not_called()


class TestLoad:

    def test_inserts_seed_records(self, mongo_store, collection):
        collection.insert_many.return_value = MagicMock(inserted_ids=[1, 2])
        count = mongo_store.load([
            {"id": "xid-style-id", "name": "Tea"},
            {"name": "Toast", "publishedAt": "2024-01-01T00:00:00Z"},
        ])

        docs = collection.insert_many.call_args.args[0]
        assert count == 2
        assert all(isinstance(d["_id"], ObjectId) for d in docs)
        assert [d["name"] for d in docs] == ["Tea", "Toast"]

    def test_nothing_to_load(self, mongo_store, collection):
        assert mongo_store.load([]) == 0
        collection.insert_many.assert_not_called()


class BsonCollection:
    """In-process collection that stores documents as encoded BSON"""

    OPTIONS = CodecOptions(tz_aware=True)

    def __init__(self):
        self.raw = []

    def insert_one(self, doc):
        self.raw.append(bson.encode(doc))

    def find(self, query):
        return [bson.decode(raw, codec_options=self.OPTIONS) for raw in self.raw]

    def find_one(self, query):
        for doc in self.find({}):
            if doc["_id"] == query["_id"]:
                return doc
        return None


class TestStoredDocuments:

    def test_create_matches_what_is_read_back(self):
        store = MongoRecipeStore(BsonCollection())

        created = store.create(RecipeIn(name="Tea", tags=["Drink"], instructions=["Boil", "Steep"]))

        assert created.published_at.microsecond % 1000 == 0
        assert store.list() == [created]
        assert store.get(created.id) == created

    def test_missing_published_at_uses_object_id_time(self, mongo_store, collection):
        doc = make_doc()
        del doc["publishedAt"]
        collection.find.return_value = [doc]

        first = mongo_store.list()[0].published_at
        second = mongo_store.list()[0].published_at

        assert first == second == doc["_id"].generation_time

    def test_null_lists_read_as_empty(self, mongo_store, collection):
        doc = make_doc()
        doc["tags"] = None
        collection.find_one.return_value = doc

        assert mongo_store.get(str(doc["_id"])).tags == []

    def test_malformed_document_is_storage_error(self, mongo_store, collection):
        doc = make_doc()
        doc["ingredients"] = "Eggs"
        collection.find.return_value = [doc]

        with pytest.raises(StorageError):
            mongo_store.list()
