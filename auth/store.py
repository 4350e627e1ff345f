"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as contacts/store.py).
UserStore and SessionStore are the repositories; _row_to_user /
_row_to_session are the mappers. The service and route code never touch SQL.

Security:
  All queries use bound parameters. No f-strings in SQL.

Invariants enforced by the schema rather than by application locking:
  UNIQUE(users.email)      -- one account per email address.
  UNIQUE(sessions.user_id) -- one live session per user. Two concurrent
      logins for the same user cannot both insert; the loser gets
      DuplicateKeyError and AuthService retries its delete-then-create.

Both repositories share one engine (and one database) when built through
open_auth_stores(); they can also be constructed independently in tests.

DB path: auth/contactvault_auth.db unless DATABASE_URL is set.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Session, User
from core.clock import from_iso, to_iso, utc_now

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'contactvault_auth.db'}"


class DuplicateKeyError(Exception):
    """Raised when an insert violates a UNIQUE constraint."""


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("profile", Text, nullable=False, server_default="{}"),  # JSON object
    Column("created_at", String(32), nullable=False),
)

_sessions = Table(
    "sessions",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("user_id", String(32), nullable=False, unique=True),
    Column("access_token", String(64), nullable=False, unique=True),
    Column("refresh_token", String(64), nullable=False, unique=True),
    Column("access_token_valid_until", String(32), nullable=False),
    Column("refresh_token_valid_until", String(32), nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Engine helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def build_engine(db_url: str = _DEFAULT_DB_URL) -> Engine:
    """Create an engine for db_url and make sure the auth tables exist."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    _metadata.create_all(engine)
    return engine


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Credential store
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore()
        user = store.create_user(User(email="a@x.com", hashed_password=hash_password("p1")))
        same = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, engine: Engine | None = None) -> None:
        self.engine: Engine = engine if engine is not None else build_engine(db_url)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def create_user(self, user: User) -> User:
        """Insert a new user and return it with id and created_at filled in.

        Raises DuplicateKeyError if the email already exists. AuthService
        checks first, but a concurrent registration can still win the race.
        """
        user_id = _new_id()
        created_at = to_iso(utc_now())
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        email=user.email,
                        hashed_password=user.hashed_password,
                        profile=json.dumps(user.profile),
                        created_at=created_at,
                    )
                )
        except IntegrityError as exc:
            raise DuplicateKeyError(f"email already registered: {user.email!r}") from exc
        return User(
            id=user_id,
            email=user.email,
            hashed_password=user.hashed_password,
            profile=dict(user.profile),
            created_at=created_at,
        )

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id_and_email(self, user_id: str, email: str) -> User | None:
        """Look up a user only if both id and email still match.

        Used by password reset: a token minted before the account's email
        changed must not resolve to the account any more.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where((_users.c.id == user_id) & (_users.c.email == email))
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_password(self, user_id: str, hashed_password: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(_users.update().where(_users.c.id == user_id).values(hashed_password=hashed_password))

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for Session records.

    Each write runs in its own transaction (engine.begin()). The single-
    session invariant is carried by UNIQUE(user_id), not by in-process locks,
    so it holds across several service instances sharing one database.
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, engine: Engine | None = None) -> None:
        self.engine: Engine = engine if engine is not None else build_engine(db_url)

    def create(self, session: Session) -> Session:
        """Insert a session and return it with id and created_at filled in.

        Raises DuplicateKeyError if the user already has a session (or, in
        the astronomically unlikely case, a token collides).
        """
        session_id = _new_id()
        created_at = to_iso(utc_now())
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    _sessions.insert().values(
                        id=session_id,
                        user_id=session.user_id,
                        access_token=session.access_token,
                        refresh_token=session.refresh_token,
                        access_token_valid_until=to_iso(session.access_token_valid_until),
                        refresh_token_valid_until=to_iso(session.refresh_token_valid_until),
                        created_at=created_at,
                    )
                )
        except IntegrityError as exc:
            raise DuplicateKeyError(f"session already exists for user {session.user_id}") from exc
        return Session(
            id=session_id,
            user_id=session.user_id,
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            access_token_valid_until=session.access_token_valid_until,
            refresh_token_valid_until=session.refresh_token_valid_until,
            created_at=created_at,
        )

    def get_by_user_id(self, user_id: str) -> Session | None:
        with self.engine.connect() as conn:
            row = conn.execute(_sessions.select().where(_sessions.c.user_id == user_id)).fetchone()
        return _row_to_session(row) if row is not None else None

    def get_by_id_and_refresh_token(self, session_id: str, refresh_token: str) -> Session | None:
        """Match on the exact (id, refresh_token) pair. A rotated token never matches."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _sessions.select().where(
                    (_sessions.c.id == session_id) & (_sessions.c.refresh_token == refresh_token)
                )
            ).fetchone()
        return _row_to_session(row) if row is not None else None

    def get_by_access_token(self, access_token: str) -> Session | None:
        with self.engine.connect() as conn:
            row = conn.execute(_sessions.select().where(_sessions.c.access_token == access_token)).fetchone()
        return _row_to_session(row) if row is not None else None

    def delete_by_user_id(self, user_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(_sessions.delete().where(_sessions.c.user_id == user_id))

    def delete_by_id(self, session_id: str, refresh_token: str | None = None) -> bool:
        """Delete a session by id. Returns True if a row was removed.

        Deleting an unknown id is not an error. When refresh_token is given
        the row is removed only if it still holds that token, so of two
        concurrent rotations of the same token exactly one sees True.
        """
        condition = _sessions.c.id == session_id
        if refresh_token is not None:
            condition = condition & (_sessions.c.refresh_token == refresh_token)
        with self.engine.begin() as conn:
            result = conn.execute(_sessions.delete().where(condition))
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


def open_auth_stores(db_url: str = _DEFAULT_DB_URL) -> tuple[UserStore, SessionStore]:
    """Build a UserStore and SessionStore that share one engine."""
    engine = build_engine(db_url)
    return UserStore(engine=engine), SessionStore(engine=engine)


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        hashed_password=row.hashed_password,
        profile=json.loads(row.profile or "{}"),
        created_at=row.created_at,
    )


def _row_to_session(row) -> Session:
    return Session(
        id=row.id,
        user_id=row.user_id,
        access_token=row.access_token,
        refresh_token=row.refresh_token,
        access_token_valid_until=from_iso(row.access_token_valid_until),
        refresh_token_valid_until=from_iso(row.refresh_token_valid_until),
        created_at=row.created_at,
    )
