"""Liveness endpoint and response headers."""

import pytest
from httpx import AsyncClient


@pytest.mark.api
@pytest.mark.asyncio
class TestHealth:
    async def test_liveness(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["service"] == "AIBotClip"

    async def test_security_headers(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.headers["x-content-type-options"] == "nosniff"
        assert resp.headers["x-frame-options"] == "DENY"

    async def test_unknown_route_uses_error_envelope(self, client: AsyncClient):
        resp = await client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "HTTP_404"
