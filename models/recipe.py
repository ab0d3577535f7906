from datetime import datetime, timezone
from typing import List
from pydantic import BaseModel, Field, field_validator
from .base import BaseEntity


def utc_now() -> datetime:
    # BSON datetimes only carry milliseconds
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class StringListsMixin(BaseModel):
    """Treat a null tags/ingredients/instructions list as empty"""

    @field_validator("tags", "ingredients", "instructions", mode="before", check_fields=False)
    @classmethod
    def null_as_empty(cls, value):
        return [] if value is None else value


class Recipe(StringListsMixin, BaseEntity):
    """Stored recipe as returned by every endpoint"""
    name: str = Field(..., description="Name of the recipe")
    tags: List[str] = Field(default_factory=list, description="Tags used for categorization and search")
    ingredients: List[str] = Field(default_factory=list, description="List of ingredients")
    instructions: List[str] = Field(default_factory=list, description="Step-by-step cooking instructions")
    published_at: datetime = Field(default_factory=utc_now, description="When the recipe was created", alias="publishedAt")

    model_config = {
        "populate_by_name": True,
        "validate_assignment": True,
        "extra": "ignore",
        "json_schema_extra": {
            "example": {
                "id": "c0ffee9b2a4e4d1f8e7a",
                "name": "Spaghetti Carbonara",
                "tags": ["Italian", "Pasta", "Dinner"],
                "ingredients": ["Eggs", "Parmesan Cheese", "Bacon", "Spaghetti"],
                "instructions": ["Boil pasta", "Cook bacon", "Mix eggs with cheese", "Combine everything"],
                "publishedAt": "2025-03-01T18:30:00Z"
            }
        }
    }

    def has_tag(self, tag: str) -> bool:
        """Case-insensitive tag membership (simple lowercase, no full Unicode folding)"""
        wanted = tag.lower()
        return any(t.lower() == wanted for t in self.tags)


class RecipeIn(StringListsMixin):
    """Request body for creating or replacing a recipe.

    id and publishedAt are assigned by the server, so they are dropped
    here even when the client sends them. Missing fields take their
    empty values.
    """
    name: str = ""
    tags: List[str] = Field(default_factory=list)
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)

    model_config = {
        "extra": "ignore"
    }
