"""Tests for API middleware: correlation ID, actor headers, response headers."""

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_correlation_id_generated(client: AsyncClient):
    """When X-Correlation-ID is not sent, response has a generated correlation ID."""
    r = await client.get("/health")
    assert r.status_code == 200
    assert len(r.headers["X-Correlation-ID"]) > 0


@pytest.mark.asyncio
async def test_correlation_id_preserved_when_passed(client: AsyncClient):
    """When X-Correlation-ID is sent, the same value is returned in response."""
    correlation_id = "my-correlation-123"
    r = await client.get("/health", headers={"X-Correlation-ID": correlation_id})
    assert r.status_code == 200
    assert r.headers.get("X-Correlation-ID") == correlation_id
    assert r.json().get("correlation_id") == correlation_id


@pytest.mark.asyncio
async def test_unknown_role_rejected(client: AsyncClient):
    r = await client.get("/health", headers={"X-Actor-ID": "u1", "X-Actor-Role": "OWNER"})
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_role_header_is_case_insensitive(client: AsyncClient):
    r = await client.get("/health", headers={"X-Actor-ID": "u1", "X-Actor-Role": "admin"})
    assert r.status_code == 200
