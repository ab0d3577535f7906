from pydantic import BaseModel, Field
from uuid import uuid4


def generate_id() -> str:
    """Short unique textual id for records that are not stored in MongoDB"""
    return uuid4().hex[:20]


class BaseEntity(BaseModel):
    """Base entity class with common fields"""
    id: str = Field(default_factory=generate_id, min_length=1)

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
        "json_schema_extra": {
            "example": {
                "id": "c0ffee9b2a4e4d1f8e7a"
            }
        }
    }
