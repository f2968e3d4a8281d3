"""Tests for app-level routes and error envelopes."""

import pytest
from httpx import AsyncClient, ASGITransport

from lead_orchestrator.main import app


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "lead-orchestrator", "version": "1.0.0"}


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get("/api/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Not Found"}


@pytest.mark.asyncio
async def test_bad_path_parameter_is_400(client):
    resp = await client.get("/api/dashboard/lead/not-a-uuid")
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["errors"][0]["field"] == "path.lead_id"


@pytest.mark.asyncio
async def test_unhandled_error_uses_generic_envelope():
    async def explode():
        raise RuntimeError("kaboom")

    app.add_api_route("/__explode", explode)
    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await ac.get("/__explode")
    finally:
        app.router.routes = [r for r in app.router.routes if getattr(r, "path", None) != "/__explode"]

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Internal server error"}
