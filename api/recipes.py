from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from models.recipe import Recipe, RecipeIn
from storage.base import RecipeNotFound, RecipeStore, StorageError
from .dependencies import get_store

router = APIRouter()

# Store calls block, so routes are plain def and run in the threadpool


def storage_failure(action: str, e: StorageError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(e)}"
    )


def not_found(e: RecipeNotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=Recipe, status_code=status.HTTP_201_CREATED)
def create_recipe(recipe: RecipeIn, store: RecipeStore = Depends(get_store)):
    """Create a new recipe"""
    try:
        return store.create(recipe)
    except StorageError as e:
        raise storage_failure("create recipe", e)


@router.get("", response_model=List[Recipe])
def list_recipes(store: RecipeStore = Depends(get_store)):
    """Get all recipes"""
    try:
        return store.list()
    except StorageError as e:
        raise storage_failure("load recipes", e)


# Registered before /{recipe_id} so "search" is never taken for an id
@router.get("/search", response_model=List[Recipe])
def search_recipes(tag: str = "", store: RecipeStore = Depends(get_store)):
    """Get recipes carrying the given tag (case-insensitive)"""
    try:
        return store.find_by_tag(tag)
    except StorageError as e:
        raise storage_failure("search recipes", e)


@router.get("/{recipe_id}", response_model=Recipe)
def get_recipe(recipe_id: str, store: RecipeStore = Depends(get_store)):
    """Get a specific recipe by ID"""
    try:
        return store.get(recipe_id)
    except RecipeNotFound as e:
        raise not_found(e)
    except StorageError as e:
        raise storage_failure("get recipe", e)


@router.put("/{recipe_id}", response_model=Recipe)
def update_recipe(recipe_id: str, recipe: RecipeIn, store: RecipeStore = Depends(get_store)):
    """Replace a recipe's fields. id and publishedAt are kept."""
    try:
        return store.update(recipe_id, recipe)
    except RecipeNotFound as e:
        raise not_found(e)
    except StorageError as e:
        raise storage_failure("update recipe", e)


@router.delete("/{recipe_id}")
def delete_recipe(recipe_id: str, store: RecipeStore = Depends(get_store)):
    """Delete a recipe"""
    try:
        store.delete(recipe_id)
    except RecipeNotFound as e:
        raise not_found(e)
    except StorageError as e:
        raise storage_failure("delete recipe", e)
    return {"message": "recipe deleted"}
