import os


# ----------------------------------------------------------------------
# 1. Environment MUST be set before any imports happen
# ----------------------------------------------------------------------

os.environ.setdefault("FREELAGO_ENV", "test")
os.environ.setdefault("FREELAGO_STORAGE_BACKEND", "memory")
os.environ.setdefault("FREELAGO_USER", "test")
os.environ.setdefault("FREELAGO_PASSWORD", "test")


# ----------------------------------------------------------------------
# 2. Fixtures
# ----------------------------------------------------------------------

import httpx
import pytest
import pytest_asyncio

from freelago.config import AppConfig
from freelago.main import create_app
from freelago.storage import InMemoryTaskStore


@pytest.fixture()
def config() -> AppConfig:
    return AppConfig(storage_backend="memory", strict_payloads=False)


@pytest.fixture()
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture()
def app(config, store):
    return create_app(config=config, task_store=store)


@pytest_asyncio.fixture()
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture()
def task_payload():
    return {
        "title": "Build landing page",
        "description": "Responsive landing page for a bakery",
        "category": "Web Development",
        "price": 250,
        "budget": 300,
        "deadline": "2025-12-31",
        "userEmail": "owner@example.com",
    }
