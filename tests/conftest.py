"""
tests/conftest.py -- Shared test fixtures for the session auth tests.

This module provides:
  - engine: fresh in-memory SQLite engine with the auth schema
  - hasher: bcrypt at the minimum cost factor (rounds=4) for speed
  - credentials / sessions / gateway: the real stores over that engine
  - store_at(): a SessionStore whose clock is pinned to a given instant
  - api_client: TestClient over the real FastAPI app with a patched lifespan

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. Each test gets its own uniquely named database.

The TestClient talks plain http://, so the cookie jar never replays the
Secure session cookie on its own. Tests send the Cookie header explicitly.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import DateTime, literal
from sqlalchemy.engine import Engine

from api.main import app
from auth.db import create_auth_engine
from auth.gateway import AuthGateway
from auth.passwords import BcryptHasher
from auth.store import CredentialStore, SessionStore


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> BcryptHasher:
    return BcryptHasher(rounds=4)


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    e = create_auth_engine("sqlite:///:memory:")
    yield e
    e.dispose()


@pytest.fixture
def credentials(engine: Engine) -> CredentialStore:
    return CredentialStore(engine)


@pytest.fixture
def sessions(engine: Engine) -> SessionStore:
    return SessionStore(engine)


@pytest.fixture
def gateway(credentials: CredentialStore, sessions: SessionStore, hasher: BcryptHasher) -> AuthGateway:
    return AuthGateway(credentials, sessions, hasher)


@pytest.fixture
def store_at(engine: Engine) -> Callable[..., SessionStore]:
    """Return a factory for SessionStores whose database clock reads a fixed instant.

    The instant is bound as a SQL literal, so the TTL predicate is still
    evaluated inside the database -- only the value of "now" is pinned.
    """

    def _factory(moment: datetime, ttl_seconds: int = 300) -> SessionStore:
        return SessionStore(engine, ttl_seconds=ttl_seconds, now=literal(moment, DateTime()))

    return _factory


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(engine: Engine, gateway: AuthGateway):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-built test engine and gateway into app.state so routes never
    touch the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = engine
        app.state.gateway = gateway
        yield

    return test_lifespan


@pytest.fixture
def api_client(hasher: BcryptHasher) -> Generator[TestClient, None, None]:
    """Yield a TestClient backed by an isolated shared-memory auth database."""
    db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    api_engine = create_auth_engine(db_url)
    api_gateway = AuthGateway(CredentialStore(api_engine), SessionStore(api_engine), hasher)

    app.router.lifespan_context = _patch_lifespan(api_engine, api_gateway)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    api_engine.dispose()
