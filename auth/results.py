"""
auth/results.py -- Result type and error taxonomy for AuthService.

Every AuthService operation returns either Ok(value) or Err(kind). Expected
failures (bad password, stale refresh token, ...) are values, not exceptions,
so route handlers map them to HTTP responses in one place and nothing in the
service needs try/except for control flow.

Unexpected failures (database down, template missing) are NOT modelled here.
They propagate as ordinary exceptions to api/main.py's catch-all handler,
which logs them and returns a generic 500.

Usage:
    result = service.login(email, password)
    if isinstance(result, Err):
        raise HTTPException(result.kind.status, detail=result.kind.as_detail())
    session = result.value
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class AuthErrorKind(Enum):
    """Tagged auth failures. Each member carries (code, HTTP status, message).

    INVALID_CREDENTIALS deliberately covers both "no such email" and "wrong
    password" so callers cannot enumerate accounts.
    """

    DUPLICATE_KEY = ("email_in_use", 409, "Email in use")
    INVALID_CREDENTIALS = ("invalid_credentials", 401, "Email or password is incorrect")
    SESSION_NOT_FOUND = ("session_not_found", 401, "Session not found")
    SESSION_EXPIRED = ("session_expired", 401, "Session token expired")
    ACCESS_TOKEN_EXPIRED = ("access_token_expired", 401, "Access token expired")
    USER_NOT_FOUND = ("user_not_found", 404, "User not found!")
    INVALID_OR_EXPIRED_TOKEN = ("invalid_or_expired_token", 401, "Token is expired or invalid.")
    DELIVERY_FAILED = ("delivery_failed", 500, "Failed to send the email, please try again later.")

    def __init__(self, code: str, status: int, message: str) -> None:
        self.code = code
        self.status = status
        self.message = message

    def as_detail(self) -> dict[str, str]:
        """Return the {code, message} dict used as HTTPException.detail."""
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    kind: AuthErrorKind


Result = Union[Ok[T], Err]
