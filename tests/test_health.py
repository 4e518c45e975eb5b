"""Health endpoint tests."""

import pytest

from tablecall.realtime import Connection


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["status"] == "healthy"
    assert "version" in data
    # No Redis in tests
    assert data["redis"].startswith("unavailable")


@pytest.mark.asyncio
async def test_health_reports_hub_counters(app, client):
    app.state.hub.join(Connection("r1"))
    app.state.hub.join(Connection("r1"))
    app.state.hub.join(Connection("r2"))

    data = (await client.get("/api/v1/health")).json()
    assert data["hub"] == {"restaurants": 2, "connections": 3}


@pytest.mark.asyncio
async def test_health_is_open(unauthenticated_client):
    resp = await unauthenticated_client.get("/api/v1/health")
    assert resp.status_code == 200
