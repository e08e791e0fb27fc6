"""Unit tests for health endpoint behavior."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.deps import get_db
from src.main import app


class FakeSession:
    """Fake async database session for health checks."""

    def __init__(self, should_fail: bool) -> None:
        self.should_fail = should_fail

    async def execute(self, _statement: object) -> None:
        """Simulate database execute behavior."""
        if self.should_fail:
            raise RuntimeError("database unavailable")


async def _make_request(db_fail: bool = False) -> AsyncClient:
    async def override_get_db() -> AsyncGenerator[FakeSession, None]:
        yield FakeSession(should_fail=db_fail)

    app.dependency_overrides[get_db] = override_get_db

    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    )


@pytest.mark.asyncio
async def test_health_endpoint_returns_ok() -> None:
    """Return ok when the database is connected."""
    client = await _make_request()
    try:
        response = await client.get("/api/health")
    finally:
        await client.aclose()
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "db": "connected"}


@pytest.mark.asyncio
async def test_health_endpoint_degraded_on_db_failure() -> None:
    """Return degraded when database is disconnected."""
    client = await _make_request(db_fail=True)
    try:
        response = await client.get("/api/health")
    finally:
        await client.aclose()
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == {"status": "degraded", "db": "disconnected"}


@pytest.mark.asyncio
async def test_health_echoes_request_id() -> None:
    """X-Request-ID is propagated back to the caller."""
    client = await _make_request()
    try:
        response = await client.get("/api/health", headers={"X-Request-ID": "req-123"})
        generated = await client.get("/api/health")
    finally:
        await client.aclose()
        app.dependency_overrides.clear()

    assert response.headers["X-Request-ID"] == "req-123"
    assert generated.headers["X-Request-ID"]
