"""Health check endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["version"] == "0.1.0"
    assert "time" in data


@pytest.mark.asyncio
async def test_trace_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Trace-Id": "trc_test123"})
    assert response.headers["X-Trace-Id"] == "trc_test123"


@pytest.mark.asyncio
async def test_trace_id_is_generated(client):
    response = await client.get("/health")
    assert response.headers["X-Trace-Id"].startswith("trc_")
