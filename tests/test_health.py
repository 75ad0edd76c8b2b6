"""
tests/test_health.py -- Integration tests for GET /health.

Covers:
  - 200 response with status "OK" and an ISO 8601 timestamp
  - No authentication required
"""

from __future__ import annotations

from datetime import datetime


def test_health_returns_ok_with_timestamp(api_client):
    resp = api_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "OK"
    parsed = datetime.fromisoformat(data["timestamp"])
    assert parsed.tzinfo is not None


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    resp = api_client.get("/health", headers={})
    assert resp.status_code == 200
    assert resp.json()["status"] == "OK"
