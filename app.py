"""
Recipes API
FastAPI service exposing CRUD and tag search over recipes, backed by
an in-memory collection or a MongoDB collection.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.recipes import router as recipes_router
from config.settings import Settings, settings as default_settings
from storage.base import RecipeStore
from storage.local_storage import InMemoryRecipeStore
from storage.mongo_storage import MongoRecipeStore

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def build_store(settings: Settings) -> RecipeStore:
    """Pick the backend from configuration.

    A configured but unreachable database is fatal: the service exits
    instead of retrying.
    """
    if settings.mongo_uri:
        try:
            return MongoRecipeStore.connect(
                settings.mongo_uri,
                settings.mongo_database,
                settings.mongo_collection,
                timeout_ms=settings.mongo_timeout_ms,
            )
        except PyMongoError as e:
            logger.critical("Could not connect to MongoDB: %s", e)
            raise SystemExit(1) from e

    logger.info("MONGO_URI not set, using in-memory recipe store")
    return InMemoryRecipeStore(seed_file=settings.recipes_seed_file)


def validation_error_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts) or "invalid request"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": validation_error_message(exc)},
    )


def create_app(store: Optional[RecipeStore] = None, settings: Settings = default_settings) -> FastAPI:
    """Build the application. Tests pass a ready store; otherwise one is built at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "store", None) is None:
            app.state.store = build_store(settings)
        yield
        app.state.store.close()

    app = FastAPI(
        title="Recipes API",
        description="Create, list, search, update and delete recipes.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.store = store

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(recipes_router, prefix="/recipes", tags=["recipes"])

    @app.get("/")
    async def root(request: Request):
        """Health check endpoint"""
        current = request.app.state.store
        return {
            "service": "Recipes API",
            "status": "healthy",
            "version": VERSION,
            "backend": current.name if current is not None else None,
        }

    return app


app = create_app()
