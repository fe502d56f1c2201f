"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the live test database
  - degraded status when the database probe fails
  - No authentication required
"""

from __future__ import annotations

from sqlalchemy import create_engine


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = api_client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_reports_degraded_database(api_client, tmp_path):
    """A database that cannot be opened is reported, not raised."""
    original = api_client.app.state.engine
    api_client.app.state.engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'nope.db'}")
    try:
        data = api_client.get("/api/v1/health").json()
    finally:
        api_client.app.state.engine = original
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "error"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any session cookie."""
    resp = api_client.get("/api/v1/health", headers={})
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
