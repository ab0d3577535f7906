"""Shared FastAPI dependencies."""

from fastapi import Request

from storage.base import RecipeStore


def get_store(request: Request) -> RecipeStore:
    """Provide the recipe store built once at application startup."""
    return request.app.state.store
