import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from pydantic import ValidationError

from models.recipe import Recipe, RecipeIn, utc_now
from .base import RecipeNotFound, RecipeStore, StorageError

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("name", "tags", "ingredients", "instructions")


def to_recipe(doc: Mapping[str, Any]) -> Recipe:
    """Convert a stored document (_id as ObjectId) to a Recipe.

    A document without publishedAt falls back to the ObjectId creation
    time so repeated reads agree. Documents that don't fit the Recipe
    shape raise StorageError.
    """
    data = {k: v for k, v in doc.items() if k != "_id"}
    data["id"] = str(doc["_id"])
    if data.get("publishedAt") is None and isinstance(doc["_id"], ObjectId):
        data["publishedAt"] = doc["_id"].generation_time
    try:
        return Recipe.model_validate(data)
    except ValidationError as e:
        logger.error("Stored recipe %s is malformed: %s", data["id"], e)
        raise StorageError(f"stored recipe {data['id']} is malformed") from e


def to_document(recipe: Recipe) -> Dict[str, Any]:
    doc = recipe.model_dump(by_alias=True, exclude={"id"})
    doc["_id"] = ObjectId(recipe.id)
    return doc


def parse_object_id(recipe_id: str) -> Optional[ObjectId]:
    """ObjectId for a path id, or None when the id can't be one"""
    try:
        return ObjectId(recipe_id)
    except (InvalidId, TypeError):
        return None


def tag_filter(tag: str) -> Dict[str, Any]:
    # \A and \z anchor the whole string; $ would also match before a trailing newline
    return {"tags": {"$regex": rf"\A{re.escape(tag)}\z", "$options": "i"}}


class MongoRecipeStore(RecipeStore):
    """Recipes kept as one document per recipe in a MongoDB collection"""

    name = "mongodb"

    def __init__(self, collection: Collection, client: Optional[MongoClient] = None):
        self.collection = collection
        self.client = client

    @classmethod
    def connect(cls, uri: str, database: str, collection: str = "recipes",
                timeout_ms: int = 5000) -> "MongoRecipeStore":
        """Connect and ping the primary. Errors propagate to the caller."""
        client = MongoClient(uri, tz_aware=True, serverSelectionTimeoutMS=timeout_ms)
        try:
            client.admin.command("ping")
        except PyMongoError:
            client.close()
            raise
        logger.info("Connected to MongoDB (database=%s, collection=%s)", database, collection)
        return cls(client[database][collection], client=client)

    def create(self, recipe: RecipeIn) -> Recipe:
        stored = Recipe(id=str(ObjectId()), published_at=utc_now(), **recipe.model_dump())
        try:
            self.collection.insert_one(to_document(stored))
        except PyMongoError as e:
            logger.error("Failed to insert recipe: %s", e)
            raise StorageError(str(e)) from e
        logger.info("Created recipe %s (%s)", stored.id, stored.name)
        return stored

    def _find(self, query: Dict[str, Any]) -> List[Recipe]:
        try:
            return [to_recipe(doc) for doc in self.collection.find(query)]
        except PyMongoError as e:
            logger.error("Failed to query recipes: %s", e)
            raise StorageError(str(e)) from e

    def list(self) -> List[Recipe]:
        return self._find({})

    def find_by_tag(self, tag: str) -> List[Recipe]:
        return self._find(tag_filter(tag))

    def get(self, recipe_id: str) -> Recipe:
        object_id = parse_object_id(recipe_id)
        if object_id is None:
            raise RecipeNotFound(recipe_id)
        try:
            doc = self.collection.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error("Failed to fetch recipe %s: %s", recipe_id, e)
            raise StorageError(str(e)) from e
        if doc is None:
            raise RecipeNotFound(recipe_id)
        return to_recipe(doc)

    def update(self, recipe_id: str, recipe: RecipeIn) -> Recipe:
        object_id = parse_object_id(recipe_id)
        if object_id is None:
            raise RecipeNotFound(recipe_id)
        changes = recipe.model_dump(include=set(MUTABLE_FIELDS))
        try:
            doc = self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Failed to update recipe %s: %s", recipe_id, e)
            raise StorageError(str(e)) from e
        if doc is None:
            raise RecipeNotFound(recipe_id)
        logger.info("Updated recipe %s", recipe_id)
        return to_recipe(doc)

    def delete(self, recipe_id: str) -> None:
        object_id = parse_object_id(recipe_id)
        if object_id is None:
            raise RecipeNotFound(recipe_id)
        try:
            result = self.collection.delete_one({"_id": object_id})
        except PyMongoError as e:
            logger.error("Failed to delete recipe %s: %s", recipe_id, e)
            raise StorageError(str(e)) from e
        if result.deleted_count == 0:
            raise RecipeNotFound(recipe_id)
        logger.info("Deleted recipe %s", recipe_id)

    def load(self, records: Iterable[Dict[str, Any]]) -> int:
        docs = []
        for record in records:
            recipe = Recipe.model_validate(record)
            if parse_object_id(recipe.id) is None:
                recipe.id = str(ObjectId())
            docs.append(to_document(recipe))
        if not docs:
            return 0
        try:
            result = self.collection.insert_many(docs)
        except PyMongoError as e:
            logger.error("Failed to insert seed recipes: %s", e)
            raise StorageError(str(e)) from e
        return len(result.inserted_ids)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
