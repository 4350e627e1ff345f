"""Unit tests for auth/store.py -- credential and session repositories.

Covers:
- UNIQUE(email): duplicate registration raises DuplicateKeyError, first record intact
- get_by_id_and_email() requires both fields to match
- UNIQUE(user_id) on sessions: a second live session for a user is refused
- exact (id, refresh_token) lookup; delete_by_id() idempotence and token guard
- expiry timestamps round-trip as timezone-aware datetimes
"""

from datetime import datetime, timedelta, timezone

import pytest

from auth.models import Session, User
from auth.passwords import hash_password, verify_password
from auth.store import DuplicateKeyError, SessionStore, UserStore

_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _session_for(user_id: str, suffix: str = "1") -> Session:
    return Session(
        user_id=user_id,
        access_token=f"access-{user_id}-{suffix}",
        refresh_token=f"refresh-{user_id}-{suffix}",
        access_token_valid_until=_NOW + timedelta(minutes=15),
        refresh_token_valid_until=_NOW + timedelta(days=30),
    )


@pytest.fixture
def users(auth_stores) -> UserStore:
    return auth_stores[0]


@pytest.fixture
def sessions(auth_stores) -> SessionStore:
    return auth_stores[1]


# ---------------------------------------------------------------------------
# UserStore
# ---------------------------------------------------------------------------


class TestUserStore:
    def test_create_assigns_id_and_round_trips_profile(self, users: UserStore):
        created = users.create_user(User(email="a@example.com", hashed_password="h", profile={"name": "Ann"}))
        assert created.id
        assert created.created_at

        fetched = users.get_by_email("a@example.com")
        assert fetched is not None
        assert fetched.id == created.id
        assert fetched.profile == {"name": "Ann"}
        assert fetched.name == "Ann"

    def test_duplicate_email_refused_and_original_hash_kept(self, users: UserStore):
        users.create_user(User(email="a@example.com", hashed_password=hash_password("first")))
        with pytest.raises(DuplicateKeyError):
            users.create_user(User(email="a@example.com", hashed_password=hash_password("second")))

        stored = users.get_by_email("a@example.com")
        assert verify_password("first", stored.hashed_password)

    def test_email_lookup_is_case_sensitive(self, users: UserStore):
        users.create_user(User(email="a@example.com", hashed_password="h"))
        assert users.get_by_email("A@example.com") is None

    def test_get_by_id_and_email_requires_both(self, users: UserStore):
        user = users.create_user(User(email="a@example.com", hashed_password="h"))
        assert users.get_by_id_and_email(user.id, "a@example.com") is not None
        assert users.get_by_id_and_email(user.id, "b@example.com") is None
        assert users.get_by_id_and_email("nope", "a@example.com") is None

    def test_update_password(self, users: UserStore):
        user = users.create_user(User(email="a@example.com", hashed_password="old"))
        users.update_password(user.id, "new")
        assert users.get_by_id(user.id).hashed_password == "new"

    def test_ping(self, users: UserStore):
        assert users.ping() is True


# ---------------------------------------------------------------------------
# SessionStore
# ---------------------------------------------------------------------------


class TestSessionStore:
    def test_create_and_lookup(self, sessions: SessionStore):
        created = sessions.create(_session_for("u1"))
        assert created.id

        by_user = sessions.get_by_user_id("u1")
        assert by_user.id == created.id
        assert by_user.refresh_token_valid_until == _NOW + timedelta(days=30)
        assert by_user.access_token_valid_until.tzinfo is not None

        assert sessions.get_by_access_token("access-u1-1").id == created.id

    def test_second_session_for_same_user_refused(self, sessions: SessionStore):
        sessions.create(_session_for("u1", "1"))
        with pytest.raises(DuplicateKeyError):
            sessions.create(_session_for("u1", "2"))

    def test_sessions_for_different_users_coexist(self, sessions: SessionStore):
        sessions.create(_session_for("u1"))
        sessions.create(_session_for("u2"))
        assert sessions.get_by_user_id("u1") is not None
        assert sessions.get_by_user_id("u2") is not None

    def test_lookup_needs_exact_refresh_token(self, sessions: SessionStore):
        created = sessions.create(_session_for("u1"))
        assert sessions.get_by_id_and_refresh_token(created.id, "refresh-u1-1") is not None
        assert sessions.get_by_id_and_refresh_token(created.id, "refresh-u1-2") is None
        assert sessions.get_by_id_and_refresh_token("other", "refresh-u1-1") is None

    def test_delete_by_id_is_idempotent(self, sessions: SessionStore):
        created = sessions.create(_session_for("u1"))
        assert sessions.delete_by_id(created.id) is True
        assert sessions.delete_by_id(created.id) is False
        assert sessions.delete_by_id("never-existed") is False

    def test_delete_by_id_guarded_by_refresh_token(self, sessions: SessionStore):
        created = sessions.create(_session_for("u1"))
        assert sessions.delete_by_id(created.id, refresh_token="stale") is False
        assert sessions.get_by_user_id("u1") is not None
        assert sessions.delete_by_id(created.id, refresh_token="refresh-u1-1") is True
        assert sessions.get_by_user_id("u1") is None

    def test_delete_by_user_id_frees_the_slot(self, sessions: SessionStore):
        sessions.create(_session_for("u1", "1"))
        sessions.delete_by_user_id("u1")
        assert sessions.get_by_user_id("u1") is None
        sessions.create(_session_for("u1", "2"))
        assert sessions.get_by_user_id("u1").access_token == "access-u1-2"
