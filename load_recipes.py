#!/usr/bin/env python3
"""
Load recipes from a JSON seed file into the configured MongoDB collection.

Usage: python load_recipes.py [path/to/recipes.json]
Defaults to RECIPES_SEED_FILE. Requires MONGO_URI.
"""

import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from config.settings import settings
from storage.base import StorageError
from storage.mongo_storage import MongoRecipeStore

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def read_seed_file(path: Path) -> list:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return data


def main(argv: list) -> int:
    path = Path(argv[1] if len(argv) > 1 else settings.recipes_seed_file)

    if not settings.mongo_uri:
        logger.error("MONGO_URI is not set")
        return 1

    try:
        records = read_seed_file(path)
    except (OSError, ValueError) as e:
        logger.error("Could not read %s: %s", path, e)
        return 1

    try:
        store = MongoRecipeStore.connect(
            settings.mongo_uri,
            settings.mongo_database,
            settings.mongo_collection,
            timeout_ms=settings.mongo_timeout_ms,
        )
    except PyMongoError as e:
        logger.error("Could not connect to MongoDB: %s", e)
        return 1

    try:
        inserted = store.load(records)
    except (ValidationError, StorageError) as e:
        logger.error("Failed to load recipes: %s", e)
        return 1
    finally:
        store.close()

    logger.info("Inserted recipes: %d", inserted)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
