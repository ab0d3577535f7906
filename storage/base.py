from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List

from models.recipe import Recipe, RecipeIn


class RecipeStoreError(Exception):
    """Base class for recipe store failures"""


class RecipeNotFound(RecipeStoreError):
    """No recipe with the requested id"""

    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe with ID {recipe_id} not found")
        self.recipe_id = recipe_id


class StorageError(RecipeStoreError):
    """Backend unreachable or the operation failed"""


class RecipeStore(ABC):
    """Custody of the recipe collection. Handlers only talk to this interface."""

    name = "base"

    @abstractmethod
    def create(self, recipe: RecipeIn) -> Recipe:
        """Assign a fresh id and publishedAt, store and return the record"""

    @abstractmethod
    def list(self) -> List[Recipe]:
        """Return every recipe in a stable order (empty list when none)"""

    @abstractmethod
    def get(self, recipe_id: str) -> Recipe:
        """Return one recipe or raise RecipeNotFound"""

    @abstractmethod
    def find_by_tag(self, tag: str) -> List[Recipe]:
        """Return recipes carrying a tag equal to `tag`, ignoring case"""

    @abstractmethod
    def update(self, recipe_id: str, recipe: RecipeIn) -> Recipe:
        """Replace name, tags, ingredients and instructions.

        id and publishedAt always come from the stored record.
        Raises RecipeNotFound when there is nothing to update.
        """

    @abstractmethod
    def delete(self, recipe_id: str) -> None:
        """Remove a recipe or raise RecipeNotFound"""

    @abstractmethod
    def load(self, records: Iterable[Dict[str, Any]]) -> int:
        """Bulk insert seed records, returning how many were stored"""

    def close(self) -> None:
        """Release backend resources"""
