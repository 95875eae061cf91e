"""
tests/conftest.py -- Shared test fixtures for Gatekeeper tests.

This module provides:
  - make_store(): creates an isolated named shared-memory account DB
  - _patch_lifespan(): wires a test AuthService into app.state, bypassing real startup
  - hasher / signer / store / service: unit-level building blocks
  - api_client: TestClient against the real app with an isolated store

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because both TestClient and AuthService run store calls in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

DEBUG and BCRYPT_ROUNDS must be set before any auth/core import: DEBUG lets
get_settings() auto-generate JWT_PRIVATE_KEY, and cost 4 keeps bcrypt fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenSigner

TEST_SECRET = "test-secret-key-that-is-long-enough-0123456789"
SEVEN_DAYS = 7 * 24 * 60 * 60

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_store(db_suffix: str | None = None) -> AccountStore:
    """Create an isolated named shared-memory account store.

    Args:
        db_suffix: Unique string appended to the DB name so tests don't share
                   state. A random one is used when omitted.
    """
    suffix = db_suffix or uuid.uuid4().hex
    return AccountStore(db_url=f"sqlite:///file:test_accounts_{suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(service: AuthService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = service.store
        app.state.auth_service = service
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def signer() -> TokenSigner:
    return TokenSigner(TEST_SECRET, SEVEN_DAYS)


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = make_store()
    yield s
    s.close()


@pytest.fixture
def service(store: AccountStore, hasher: PasswordHasher, signer: TokenSigner) -> AuthService:
    return AuthService(store=store, hasher=hasher, signer=signer)


# ---------------------------------------------------------------------------
# Module-scoped API client -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(hasher: PasswordHasher) -> Generator[TestClient, None, None]:
    """Yield a TestClient that hits the real routes with an isolated store.

    base_url uses localhost so requests pass TrustedHostMiddleware.
    """
    store = make_store()
    service = AuthService(store=store, hasher=hasher, signer=TokenSigner(TEST_SECRET, SEVEN_DAYS))
    app.router.lifespan_context = _patch_lifespan(service)

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        yield client

    store.close()
