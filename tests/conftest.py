"""
tests/conftest.py -- Shared test fixtures for RecordVault integration tests.

This module provides:
  - make_test_settings(): Settings for an isolated in-memory DB
  - api_client: TestClient over a real create_app() instance, one per module
  - register_user: factory that registers a fresh identity through the API

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

bcrypt runs at cost 4 and rate limiting is off so the suite stays fast and
can log in as often as it likes; test_app_middleware.py turns the limiter
back on for its own checks.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from core.config import Settings

TEST_SECRET_KEY = "test-secret-key-0123456789abcdef0123456789abcdef"


def make_test_settings(db_suffix: str, **overrides) -> Settings:
    """Build Settings for an isolated named shared-memory database.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
        overrides: Any Settings field to replace (e.g. rate_limit_enabled).
    """
    values = {
        "debug": True,
        "secret_key": TEST_SECRET_KEY,
        "database_url": f"sqlite:///file:test_{db_suffix}?mode=memory&cache=shared&uri=true",
        "bcrypt_rounds": 4,
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Module-scoped client -- one app and one database per test module
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient whose lifespan opened stores on a private DB."""
    suffix = f"{request.module.__name__.rsplit('.', 1)[-1]}_{uuid.uuid4().hex[:8]}"
    app = create_app(make_test_settings(suffix))
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def register_user(api_client: TestClient) -> Callable[..., tuple[str, dict]]:
    """Return a helper that registers an identity and yields (token, user).

    Emails default to a random address so tests never collide within the
    shared module database.
    """

    def _register(name: str = "Test User", email: str | None = None, password: str = "password123"):
        email = email or f"user-{uuid.uuid4().hex[:12]}@example.com"
        resp = api_client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
        data = resp.json()
        return data["token"], data["user"]

    return _register
