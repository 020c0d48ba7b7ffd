"""Health endpoint tests."""

import pytest

from sneakerbox import __version__


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "healthy"
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["version"] == __version__


@pytest.mark.asyncio
async def test_health_degraded_when_database_down(client, storage):
    async def broken_ping():
        raise OSError("connection refused")

    storage.ping = broken_ping
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.json()["status"] == "degraded"
    assert r.json()["database"] == "error: OSError"
