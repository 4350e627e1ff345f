"""
auth/tokens.py -- Signed reset tokens and opaque session tokens.

Security design decisions:
  Reset tokens: python-jose with HS256. A token carries the caller's claims
       plus iat/exp and is signed with the server-held secret. Nothing is
       stored, so a reset token cannot be revoked before it expires -- the
       short TTL (5 minutes by default) is the only bound on its lifetime.

       Expiry is checked against the injected clock rather than jose's own
       wall-clock check (verify_exp is disabled), so verification is a pure
       function of (token, secret, clock) and tests can step time forward.

  Session tokens: access and refresh tokens are opaque random strings, not
       JWTs. They are only meaningful as a lookup key into the sessions
       table, which is what makes logout and rotation immediate.
       secrets.token_urlsafe(30) gives 240 bits of entropy per token.

Layer rule: no imports from api/, contacts/, or notify/.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from core.clock import Clock, utc_now

_ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Raised when a signed token is malformed, tampered with, or expired."""


def mint_opaque_token(nbytes: int = 30) -> str:
    """Return a URL-safe base64 string built from nbytes of CSPRNG output."""
    return secrets.token_urlsafe(nbytes)


class SignedTokenIssuer:
    """Issue and verify short-lived HS256 tokens.

    Usage:
        issuer = SignedTokenIssuer(settings.secret_key)
        token = issuer.issue({"sub": user.id, "email": user.email}, timedelta(minutes=5))
        claims = issuer.verify(token)   # raises InvalidTokenError
    """

    def __init__(self, secret: str, clock: Clock = utc_now) -> None:
        if not secret:
            raise ValueError("SignedTokenIssuer requires a non-empty secret.")
        self._secret = secret
        self._clock = clock

    def issue(self, claims: dict[str, Any], ttl: timedelta) -> str:
        """Sign claims with iat = now and exp = now + ttl (epoch seconds)."""
        issued_at = int(self._clock().timestamp())
        payload = dict(claims)
        payload["iat"] = issued_at
        payload["exp"] = issued_at + int(ttl.total_seconds())
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> dict[str, Any]:
        """Return the claims of a valid, unexpired token.

        Raises InvalidTokenError on a bad signature, a malformed token, a
        missing or non-numeric exp claim, or when now >= exp.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidTokenError("Token signature or format is invalid.") from exc

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            raise InvalidTokenError("Token has no expiry.")
        if self._clock().timestamp() >= exp:
            raise InvalidTokenError("Token has expired.")
        return claims
