"""
tests/conftest.py -- Shared test fixtures for ResortGate tests.

This module provides:
  - FakeClock: manually advanced clock for TokenCodec
  - hasher: PasswordHasher with 4 bcrypt rounds (fast, same code path)
  - _make_test_stores(): isolated named shared-memory DBs for users + places
  - _patch_lifespan(): wires test stores into app.state through init_state()
  - api_client: TestClient plus admin and user tokens for integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

SECRET_KEY must be set before any api/ or core/ import: get_settings() refuses
to build Settings without it. RATE_LIMIT_MAX is raised so the app-wide slowapi
ceiling never interferes with a test session that makes hundreds of requests.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any api/core import.
os.environ.setdefault("SECRET_KEY", "test-secret-key-do-not-use-in-production-0123456789")
os.environ.setdefault("RATE_LIMIT_MAX", "100000")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app, init_state
from auth.models import Role, TokenClaims, User
from auth.passwords import PasswordHasher
from auth.ratelimit import FixedWindowRateLimiter
from auth.store import UserStore
from core.config import get_settings
from places.store import PlacesStore

ADMIN_PASSWORD = "Adm1n!Pass"
USER_PASSWORD = "Us3r!Pass"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, PlacesStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    url = f"sqlite:///file:test_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(url), PlacesStore(url)


def _patch_lifespan(
    user_store: UserStore,
    places: PlacesStore,
    hasher: PasswordHasher,
    auth_limiter: FixedWindowRateLimiter,
):
    """Return an async context manager that replaces the real lifespan.

    Goes through the same init_state() the production lifespan uses, only
    with test stores, a cheap hasher and a generous auth limiter.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, get_settings(), user_store, places, hasher=hasher, auth_limiter=auth_limiter)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request, hasher) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, admin_token, user_token) for API integration tests.

    Seeds "testadmin" (admin) and "testuser" (user). Tests that need the
    wiring reach it through client.app.state (user_store, token_codec,
    auth_limiter, ...).
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    user_store, places = _make_test_stores(suffix)

    admin_id = user_store.create_user(
        User(
            username="testadmin",
            email="admin@example.com",
            role=Role.admin,
            password_hash=hasher.hash(ADMIN_PASSWORD),
        )
    )
    user_id = user_store.create_user(
        User(
            username="testuser",
            email="user@example.com",
            role=Role.user,
            password_hash=hasher.hash(USER_PASSWORD),
        )
    )

    auth_limiter = FixedWindowRateLimiter(max_attempts=100_000, window_seconds=900)
    app.router.lifespan_context = _patch_lifespan(user_store, places, hasher, auth_limiter)
    limiter.reset()

    with TestClient(app, raise_server_exceptions=True) as client:
        codec = client.app.state.token_codec
        admin_token = codec.issue(TokenClaims(subject_id=admin_id, username="testadmin", role=Role.admin))
        user_token = codec.issue(TokenClaims(subject_id=user_id, username="testuser", role=Role.user))
        yield client, admin_token, user_token

    user_store.close()
    places.close()
