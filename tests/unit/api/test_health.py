"""Tests for GET /health: 200, actor optional, correlation ID in response."""

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_returns_200(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["actor_id"] is None
    assert "correlation_id" in data


@pytest.mark.asyncio
async def test_health_echoes_actor(client: AsyncClient):
    r = await client.get("/health", headers={"X-Actor-ID": "staff-1", "X-Actor-Role": "STAFF"})
    assert r.status_code == 200
    assert r.json()["actor_id"] == "staff-1"


@pytest.mark.asyncio
async def test_health_correlation_id_auto_generated(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    assert len(r.json()["correlation_id"]) > 0
