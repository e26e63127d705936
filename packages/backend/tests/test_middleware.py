"""Tests for middleware — security headers, request IDs, rate limiting."""

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from structlog.testing import capture_logs

from helpers import make_settings
from taskhub.main import create_app
from taskhub.middleware import rate_limit


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_request_id_generated(client):
    r1 = await client.get("/api/health")
    r2 = await client.get("/api/health")
    assert "X-Request-ID" in r1.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/api/health", headers={"X-Request-ID": "trace-12345"})
    assert r.headers["X-Request-ID"] == "trace-12345"


@pytest.mark.asyncio
async def test_auth_endpoints_rate_limited(database, monkeypatch):
    """Login/register share the stricter auth bucket."""
    # Freeze the clock inside one window
    monkeypatch.setattr(rate_limit, "time", SimpleNamespace(time=lambda: 6030.0))
    app = create_app(settings=make_settings(rate_limit_auth_rpm=2), database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        body = {"email": "nobody@test.com", "password": "whatever"}
        statuses = [
            (await client.post("/api/auth/login", json=body)).status_code
            for _ in range(3)
        ]
        assert statuses == [401, 401, 429]

        r = await client.post("/api/auth/login", json=body)
        assert r.status_code == 429
        assert "Retry-After" in r.headers

        # Other routes use the default bucket
        r = await client.get("/api/health")
        assert r.status_code == 200
        assert r.headers["X-RateLimit-Limit"] == "10000"


@pytest.mark.asyncio
async def test_hsts_behind_tls_proxy(client):
    r = await client.get("/api/health", headers={"X-Forwarded-Proto": "https"})
    assert r.headers["Strict-Transport-Security"].startswith("max-age=")


@pytest.mark.asyncio
async def test_access_log_line_per_request(client):
    with capture_logs() as logs:
        r = await client.get("/api/nope", headers={"X-Request-ID": "trace-404"})

    completed = [e for e in logs if e["event"] == "request.completed"]
    assert len(completed) == 1
    entry = completed[0]
    assert entry["method"] == "GET"
    assert entry["path"] == "/api/nope"
    assert entry["status_code"] == r.status_code == 404
    assert entry["duration_ms"] >= 0
    assert entry["log_level"] == "info"
