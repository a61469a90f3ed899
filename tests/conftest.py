"""
tests/conftest.py -- Shared test fixtures for the Tripmate auth tests.

This module provides:
  - make_store(): isolated named shared-memory SQLite AccountStore
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: (TestClient, AccountStore) for API integration tests
  - store: fresh in-memory AccountStore for unit tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the API fixture because TestClient runs sync route handlers in a thread
pool. Plain :memory: DBs are per-connection and would present a blank schema
to each worker thread.

DEBUG must be set before any auth/core import so get_settings() auto-generates
SECRET_KEY in dev mode rather than raising ValueError. The login rate limit is
raised so the integration tests never trip it by accident.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any auth/core import -- get_settings() is cached.
os.environ.setdefault("DEBUG", "true")
os.environ["LOGIN_RATE_LIMIT"] = "1000/minute"

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import Authenticator
from auth.store import AccountStore

ALLOWED_ORIGIN = "http://localhost:5173"


def make_store(name: str) -> AccountStore:
    return AccountStore(db_url=f"sqlite:///file:test_auth_{name}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: AccountStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = store
        app.state.authenticator = Authenticator(store)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, AccountStore], None, None]:
    """Yield (client, store) backed by a per-module in-memory database.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers, middleware, and exception handlers.
    """
    store = make_store(request.module.__name__.replace(".", "_"))
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store

    store.close()


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()
