"""Fixtures for API unit tests: in-memory database and Redis, mock publisher, AsyncClient."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app


class FakeRedis:
    """In-memory Redis for unit tests."""

    def __init__(self):
        self._store: dict[str, str] = {}

    async def get_cache(self, key: str):
        return self._store.get(key)

    async def set_cache(self, key: str, value: str, ttl: int = 300):
        self._store[key] = value


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def mock_publisher():
    """Mock RabbitMQ publisher so tests do not connect to real broker."""
    p = AsyncMock()
    p.publish = AsyncMock(return_value=None)
    return p


@pytest.fixture
def app_with_overrides(fake_redis, mock_publisher, session_factory):
    """App with database, Redis and publisher overridden for testing."""
    from app.api import dependencies

    app.dependency_overrides[dependencies.get_session_factory] = lambda: session_factory
    app.dependency_overrides[dependencies.get_redis_client] = lambda: fake_redis
    app.dependency_overrides[dependencies.get_publisher] = lambda: mock_publisher
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app_with_overrides):
    """Async HTTP client for testing; uses overridden app."""
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def staff_headers():
    return {"X-Actor-ID": "staff-1", "X-Actor-Role": "STAFF"}


@pytest.fixture
def admin_headers():
    return {"X-Actor-ID": "admin-1", "X-Actor-Role": "ADMIN"}


@pytest.fixture
def viewer_headers():
    return {"X-Actor-ID": "viewer-1", "X-Actor-Role": "VIEWER"}
