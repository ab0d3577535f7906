from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # MongoDB (in-memory store is used when mongo_uri is unset)
    mongo_uri: Optional[str] = None
    mongo_database: str = "recipes"
    mongo_collection: str = "recipes"
    mongo_timeout_ms: int = 5000

    # Seed data for the in-memory store and load_recipes.py
    recipes_seed_file: str = "recipes.json"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False  # Allow MONGO_URI or mongo_uri


# Create singleton instance
settings = Settings()
