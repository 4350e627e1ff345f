"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in contacts/models.py -- dataclasses own domain shape; stores and the
service do the work.

Layer rule: no imports from api/, contacts/, or notify/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class User:
    """A registered account.

    email is unique and compared exactly as stored (no case folding).
    profile holds the free-form registration fields (name, phone, ...) as a
    JSON-serialisable dict. hashed_password must never leave the API layer --
    response models strip it.
    """

    email: str
    hashed_password: str
    profile: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    created_at: str | None = None

    @property
    def name(self) -> str:
        return str(self.profile.get("name", ""))


@dataclass
class Session:
    """The single active token pair bound to a user.

    A user owns at most one Session row at a time (UNIQUE(user_id) in the
    sessions table). Login and refresh replace the row; logout and password
    reset delete it.
    """

    user_id: str
    access_token: str
    refresh_token: str
    access_token_valid_until: datetime
    refresh_token_valid_until: datetime
    id: str | None = None
    created_at: str | None = None
