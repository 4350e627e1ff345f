"""
tests/conftest.py -- Shared test fixtures for ContactVault tests.

This module provides:
  - clock / mailer: deterministic stand-ins for the clock and SMTP relay
  - auth_stores / service: in-memory stores and an AuthService for unit tests
  - api_client: TestClient wired to isolated stores through a patched lifespan

Design: the HTTP fixture uses named shared-memory SQLite URIs (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any api/ import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import SessionStore, UserStore, open_auth_stores
from contacts.store import ContactStore
from tests.helpers import ApiHarness, FakeClock, RecordingMailer, build_service


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def auth_stores() -> Generator[tuple[UserStore, SessionStore], None, None]:
    users, sessions = open_auth_stores("sqlite:///:memory:")
    yield users, sessions
    users.close()


@pytest.fixture
def service(auth_stores, clock, mailer) -> AuthService:
    users, sessions = auth_stores
    return build_service(users, sessions, clock, mailer)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(users: UserStore, sessions: SessionStore, contacts: ContactStore, service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-built test stores and the AuthService into app.state so
    TestClient routes see isolated databases and never reach a real SMTP
    server.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = users
        app.state.session_store = sessions
        app.state.contacts = contacts
        app.state.auth_service = service
        yield

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness around a TestClient with fresh in-memory databases.

    Each test gets its own uniquely named databases, so tests may register
    the same email addresses without colliding.
    """
    suffix = uuid.uuid4().hex[:8]
    users, sessions = open_auth_stores(f"sqlite:///file:test_auth_{suffix}?mode=memory&cache=shared&uri=true")
    contacts = ContactStore(f"sqlite:///file:test_contacts_{suffix}?mode=memory&cache=shared&uri=true")
    clock = FakeClock(datetime.now(timezone.utc))
    mailer = RecordingMailer()
    service = build_service(users, sessions, clock, mailer)

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(users, sessions, contacts, service)

    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield ApiHarness(client, clock, mailer, users, sessions, contacts)
    finally:
        app.router.lifespan_context = original_lifespan

    contacts.close()
    users.close()
