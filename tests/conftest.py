"""Pytest configuration and fixtures."""

import os
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app
os.environ.setdefault("JWT_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
os.environ.setdefault("INITIAL_POINTS", "0")
os.environ.setdefault("INFERENCE_API_URL", "")

from src.store import InMemoryStore, get_store  # noqa: E402


@pytest.fixture
def store() -> InMemoryStore:
    """Fresh, empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def client(store: InMemoryStore) -> Generator:
    """TestClient whose requests all share the ``store`` fixture."""
    from fastapi.testclient import TestClient

    from src.main import app

    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as tc:
        yield tc
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(store: InMemoryStore) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for concurrent request tests."""
    from src.main import app

    app.dependency_overrides[get_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

