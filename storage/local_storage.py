import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from models.base import generate_id
from models.recipe import Recipe, RecipeIn
from .base import RecipeNotFound, RecipeStore

logger = logging.getLogger(__name__)


class InMemoryRecipeStore(RecipeStore):
    """Process-local recipe collection kept in insertion order.

    Every read and every read/modify/write runs under one lock, so
    concurrent requests can neither lose updates nor observe a half
    applied change.
    """

    name = "memory"

    def __init__(self, seed_file: Optional[Union[str, Path]] = None):
        self._recipes: List[Recipe] = []
        self._lock = threading.Lock()
        if seed_file is not None:
            self.seed_file(seed_file)

    def _load_json_file(self, file_path: Path) -> List[Dict[str, Any]]:
        """Load a JSON array from file; a missing or malformed file yields []"""
        if not file_path.exists():
            logger.warning("Seed file %s not found, starting with an empty collection", file_path)
            return []

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read seed file %s: %s", file_path, e)
            return []

        if not isinstance(data, list):
            logger.warning("Seed file %s does not contain a JSON array, ignoring it", file_path)
            return []
        return data

    def seed_file(self, path: Union[str, Path]) -> int:
        """Load recipes from a JSON seed file"""
        records = self._load_json_file(Path(path))
        try:
            count = self.load(records)
        except ValidationError as e:
            logger.warning("Seed file %s is malformed, ignoring it: %s", path, e)
            return 0
        logger.info("Loaded %d recipes from %s", count, path)
        return count

    def load(self, records: Iterable[Dict[str, Any]]) -> int:
        # Validate everything first so a bad record leaves the store untouched
        recipes = [Recipe.model_validate(record) for record in records]
        with self._lock:
            known = {r.id for r in self._recipes}
            for recipe in recipes:
                if recipe.id in known:
                    recipe.id = generate_id()
                known.add(recipe.id)
            self._recipes.extend(recipes)
        return len(recipes)

    def _index_of(self, recipe_id: str) -> int:
        for i, recipe in enumerate(self._recipes):
            if recipe.id == recipe_id:
                return i
        raise RecipeNotFound(recipe_id)

    def create(self, recipe: RecipeIn) -> Recipe:
        stored = Recipe(**recipe.model_dump())
        with self._lock:
            self._recipes.append(stored)
        logger.info("Created recipe %s (%s)", stored.id, stored.name)
        return stored.model_copy(deep=True)

    def list(self) -> List[Recipe]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._recipes]

    def get(self, recipe_id: str) -> Recipe:
        with self._lock:
            return self._recipes[self._index_of(recipe_id)].model_copy(deep=True)

    def find_by_tag(self, tag: str) -> List[Recipe]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._recipes if r.has_tag(tag)]

    def update(self, recipe_id: str, recipe: RecipeIn) -> Recipe:
        with self._lock:
            i = self._index_of(recipe_id)
            existing = self._recipes[i]
            updated = existing.model_copy(update=recipe.model_dump())
            self._recipes[i] = updated
        logger.info("Updated recipe %s", recipe_id)
        return updated.model_copy(deep=True)

    def delete(self, recipe_id: str) -> None:
        with self._lock:
            del self._recipes[self._index_of(recipe_id)]
        logger.info("Deleted recipe %s", recipe_id)
