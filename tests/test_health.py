"""
tests/test_health.py -- Integration tests for GET /health.

Covers:
  - 200 response with status, timestamp, environment and version
  - No authentication required
  - Unknown routes use the error envelope

That /health stays reachable once the app-wide budget is spent is covered in
tests/test_general_limit.py.
"""

from __future__ import annotations

from datetime import datetime


def test_health_returns_200_with_fields(api_client):
    """Health endpoint returns 200 with status, timestamp, environment and version."""
    client, _, _ = api_client
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert data["environment"] in ("development", "production")
    # ISO-8601, parseable
    datetime.fromisoformat(data["timestamp"])


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _, _ = api_client
    resp = client.get("/health", headers={})
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_unknown_route_uses_error_envelope(api_client):
    client, _, _ = api_client
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "http_404"
