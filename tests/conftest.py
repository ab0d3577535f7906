import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app import create_app
from storage.local_storage import InMemoryRecipeStore


@pytest.fixture
def store():
    return InMemoryRecipeStore()


@pytest.fixture
def app(store):
    return create_app(store=store)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def tea_payload():
    return {
        "name": "Tea",
        "tags": ["Drink"],
        "ingredients": ["Water", "Tea leaves"],
        "instructions": ["Boil", "Steep"],
    }
