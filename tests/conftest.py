"""
tests/conftest.py -- Shared test fixtures.

This module provides:
  - store / service: a fresh in-memory UserStore and AuthService per test
  - make_user: helper that inserts a user with a known password
  - api_client: module-scoped TestClient wired to an isolated store, with one
    active admin and one active regular user already created

Design: Named shared-memory SQLite URIs (not plain :memory:) back the
api_client store because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread. Unit-test stores stay in one thread, so :memory: is fine there.

Environment variables must be set before any project import: Settings is
cached at first use and several modules read it at import time.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

TEST_ADMIN_KEY = "test-admin-registration-key"

# CRITICAL: set before any core/auth/api import.
os.environ["DEBUG"] = "true"
os.environ["APP_ENV"] = "development"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789abcdef"
os.environ["ADMIN_SECRET_KEY"] = TEST_ADMIN_KEY
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///file:useradmin_unused?mode=memory&cache=shared&uri=true"
os.environ["STATIC_DIR"] = ""

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.models import ROLE_ADMIN, ROLE_USER, User
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import create_session_token, hash_password
from core.i18n import MessageCatalog

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpass123"
USER_EMAIL = "user@example.com"
USER_PASSWORD = "userpass123"


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: UserStore) -> AuthService:
    return AuthService(store, admin_secret_key=TEST_ADMIN_KEY, bcrypt_rounds=4)


def insert_user(
    store: UserStore,
    email: str,
    password: str = "secret123",
    role: str = ROLE_USER,
    is_active: bool = True,
    name: str | None = None,
) -> int:
    """Insert a user directly through the store and return its id."""
    return store.create_user(
        User(
            email=email,
            name=name,
            hashed_password=hash_password(password, rounds=4),
            role=role,
            is_active=is_active,
        )
    )


@pytest.fixture
def make_user(store: UserStore):
    def _make(email: str, **kwargs) -> int:
        return insert_user(store, email, **kwargs)

    return _make


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    store: UserStore
    admin_id: int
    admin_token: str
    user_id: int
    user_token: str

    def auth(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    @property
    def admin_headers(self) -> dict[str, str]:
        return self.auth(self.admin_token)

    @property
    def user_headers(self) -> dict[str, str]:
        return self.auth(self.user_token)


def _patch_lifespan(user_store: UserStore, admin_secret_key: str | None):
    """Return a lifespan that wires the test store into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.auth_service = AuthService(user_store, admin_secret_key=admin_secret_key, bcrypt_rounds=4)
        app.state.messages = MessageCatalog(default_locale="zh-CN")
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for HTTP integration tests.

    Each test module gets its own named in-memory database, so modules never
    see each other's users.
    """
    db_name = request.module.__name__.replace(".", "_")
    user_store = UserStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")

    admin_id = insert_user(user_store, ADMIN_EMAIL, ADMIN_PASSWORD, role=ROLE_ADMIN, name="Admin")
    user_id = insert_user(user_store, USER_EMAIL, USER_PASSWORD, role=ROLE_USER, name="Regular")

    app.router.lifespan_context = _patch_lifespan(user_store, TEST_ADMIN_KEY)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            store=user_store,
            admin_id=admin_id,
            admin_token=create_session_token(admin_id),
            user_id=user_id,
            user_token=create_session_token(user_id),
        )

    user_store.close()


@pytest.fixture(autouse=True)
def _fresh_cookie_jar(request) -> Generator[None, None, None]:
    """Drop cookies a previous test's login left in the shared TestClient."""
    yield
    if "api_client" in request.fixturenames:
        request.getfixturevalue("api_client").client.cookies.clear()
