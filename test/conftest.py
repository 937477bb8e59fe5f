"""Shared fixtures: an isolated app per test with an in-memory store."""

import os

os.environ.setdefault("ENVIRONMENT", "test")

import httpx
import pytest

from roomspace.config import Settings
from roomspace.main import create_app
from roomspace.repos.memory_store import InMemoryStore
from roomspace.services.design_generator import DesignGenerator

ROOM = {
    "name": "Den",
    "dimensions": {"width": 10, "length": 10, "height": 8},
    "scanData": "x",
    "roomType": "living_room",
    "budget": {"min": 100, "max": 1000},
    "style": "modern",
}


async def failing_completion(system: str, user: str) -> str:
    raise RuntimeError("text generation unavailable")


@pytest.fixture
def settings():
    return Settings(ENVIRONMENT="test", DATABASE_URL=None, OPENAI_API_KEY="", OPENAI_TIMEOUT_SECONDS=1.0)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def completion():
    """Override per test to simulate a model response."""
    return failing_completion


@pytest.fixture
def app(settings, store, completion):
    return create_app(
        settings=settings,
        store=store,
        design_generator=DesignGenerator(settings=settings, complete=completion),
    )


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def register(client, email="a@b.com", password="pw123456", first="A", last="B"):
    resp = await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "firstName": first, "lastName": last},
    )
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
async def owner_a(client):
    return await register(client, email="a@b.com")


@pytest.fixture
async def owner_b(client):
    return await register(client, email="other@b.com")


@pytest.fixture
async def room_id(client, owner_a):
    resp = await client.post("/api/rooms", json=ROOM, headers=owner_a)
    assert resp.status_code == 201, resp.text
    return resp.json()["room"]["id"]
