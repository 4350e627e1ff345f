"""
auth/passwords.py -- Password hashing and verification (bcrypt).

Security design decisions:
  bcrypt directly rather than passlib[bcrypt]: passlib's wrap-bug detection
  builds a password longer than 72 bytes, which bcrypt 4.x rejects with an
  explicit error. Direct bcrypt usage has no compatibility shim.

  bcrypt.checkpw compares digests in constant time, so verification does not
  leak how many leading bytes matched.

  DUMMY_HASH lets AuthService.login() run a full bcrypt check even when the
  email is unknown. Both failure paths then cost one bcrypt round, and
  response time does not reveal whether an account exists.

Layer rule: stdlib + bcrypt only.
"""

from __future__ import annotations

import bcrypt


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are rejected by bcrypt 4.x. The API layer
    caps password length (Pydantic max_length=64), which keeps inputs below
    that threshold even for multi-byte characters in practice.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash is treated as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at import so the first unknown-email login is not measurably
# faster or slower than later ones.
DUMMY_HASH: str = hash_password("contactvault_timing_dummy")
