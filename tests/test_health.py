"""
tests/test_health.py -- Integration tests for GET /health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' when the store answers, 'error' when it does not
  - No authentication required
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _app = api_client
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _app = api_client
    resp = client.get("/health", headers={})
    assert resp.status_code == 200


def test_health_reports_database_error(api_client, monkeypatch: pytest.MonkeyPatch):
    """A failing database round-trip degrades the component, not the endpoint."""
    client, app = api_client

    def _down():
        raise OperationalError("SELECT 1", {}, Exception("unreachable"))

    monkeypatch.setattr(app.state.user_store, "ping", _down)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["components"]["database"] == "error"


def test_unknown_route_uses_error_envelope(api_client):
    client, _app = api_client
    resp = client.get("/no-such-route")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"
