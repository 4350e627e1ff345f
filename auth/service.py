"""
auth/service.py -- Registration, login, refresh rotation, logout, and
password reset.

Session lifecycle per user:

    absent --login--> active --refresh--> active (new id, new tokens)
       ^                 |
       +-- logout / password reset / superseded by a new login

Rules the service guarantees:
  - At most one session per user. Every new session is written with
    delete-then-create; UNIQUE(sessions.user_id) catches a concurrent writer
    and the loser retries (_MAX_SESSION_WRITES attempts in total).
  - A refresh token is single-use. The matched row is deleted (guarded by
    the token itself) before the replacement is issued, and the replacement
    gets a new session id. A client that loses the response has to log in
    again.
  - Unknown email and wrong password are indistinguishable: same error kind,
    same status, and one bcrypt check on both paths.
  - A password reset deletes the user's session.

Every public method returns Ok(value) or Err(kind) (see auth/results.py).
Store and infrastructure exceptions are not caught here.

Layer rule: no imports from api/ or contacts/.
"""

from __future__ import annotations

import logging
from typing import Any

from auth.models import Session, User
from auth.passwords import DUMMY_HASH, hash_password, verify_password
from auth.results import AuthErrorKind, Err, Ok, Result
from auth.store import DuplicateKeyError, SessionStore, UserStore
from auth.tokens import InvalidTokenError, SignedTokenIssuer, mint_opaque_token
from core.clock import Clock, utc_now
from core.config import AuthConfig
from notify.mailer import DeliveryError, Mailer
from notify.renderer import TemplateRenderer

logger = logging.getLogger("contactvault.auth")

_MAX_SESSION_WRITES = 3
_RESET_TEMPLATE = "reset-password-email.html"
_RESET_SUBJECT = "Reset your password"


class AuthService:
    """Orchestrates the auth flows over the credential and session stores.

    Holds no per-request state; one instance is shared by every request
    (app.state.auth_service). Reset tokens are signed with
    config.signing_secret and nothing else.
    """

    def __init__(
        self,
        config: AuthConfig,
        users: UserStore,
        sessions: SessionStore,
        mailer: Mailer,
        renderer: TemplateRenderer,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._users = users
        self._sessions = sessions
        self._issuer = SignedTokenIssuer(config.signing_secret, clock=clock)
        self._mailer = mailer
        self._renderer = renderer
        self._clock = clock

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    def register(self, email: str, password: str, profile: dict[str, Any] | None = None) -> Result[User]:
        """Create an account. The returned User still carries hashed_password;
        the HTTP layer is responsible for not echoing it."""
        if self._users.get_by_email(email) is not None:
            return Err(AuthErrorKind.DUPLICATE_KEY)

        candidate = User(email=email, hashed_password=hash_password(password), profile=dict(profile or {}))
        try:
            user = self._users.create_user(candidate)
        except DuplicateKeyError:
            return Err(AuthErrorKind.DUPLICATE_KEY)
        logger.info("Registered user %s", user.id)
        return Ok(user)

    def login(self, email: str, password: str) -> Result[Session]:
        user = self._users.get_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt
            verify_password(password, DUMMY_HASH)
            return Err(AuthErrorKind.INVALID_CREDENTIALS)
        if not verify_password(password, user.hashed_password):
            return Err(AuthErrorKind.INVALID_CREDENTIALS)

        session = self._open_session(user.id)
        logger.info("Login for user %s (session %s)", user.id, session.id)
        return Ok(session)

    # ------------------------------------------------------------------
    # Session rotation and teardown
    # ------------------------------------------------------------------

    def refresh(self, session_id: str, refresh_token: str) -> Result[Session]:
        current = self._sessions.get_by_id_and_refresh_token(session_id, refresh_token)
        if current is None:
            return Err(AuthErrorKind.SESSION_NOT_FOUND)

        if self._clock() > current.refresh_token_valid_until:
            return Err(AuthErrorKind.SESSION_EXPIRED)

        if not self._sessions.delete_by_id(current.id, refresh_token=refresh_token):
            # Another request rotated this token between our read and delete.
            return Err(AuthErrorKind.SESSION_NOT_FOUND)

        session = self._open_session(current.user_id)
        logger.info("Rotated session %s -> %s for user %s", current.id, session.id, current.user_id)
        return Ok(session)

    def logout(self, session_id: str) -> Result[None]:
        self._sessions.delete_by_id(session_id)
        return Ok(None)

    def authenticate(self, access_token: str) -> Result[User]:
        """Resolve a bearer access token to its user."""
        session = self._sessions.get_by_access_token(access_token)
        if session is None:
            return Err(AuthErrorKind.SESSION_NOT_FOUND)
        if self._clock() > session.access_token_valid_until:
            return Err(AuthErrorKind.ACCESS_TOKEN_EXPIRED)
        user = self._users.get_by_id(session.user_id)
        if user is None:
            return Err(AuthErrorKind.SESSION_NOT_FOUND)
        return Ok(user)

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    def request_password_reset(self, email: str) -> Result[None]:
        """Mail a reset link to the account holder.

        The token is valid from the moment it is signed. If delivery fails the
        caller sees DELIVERY_FAILED, but the token stays usable until it
        expires; nothing records or revokes it.
        """
        user = self._users.get_by_email(email)
        if user is None:
            return Err(AuthErrorKind.USER_NOT_FOUND)

        token = self._issuer.issue({"sub": user.id, "email": user.email}, self._config.reset_token_ttl)
        html = self._renderer.render(
            _RESET_TEMPLATE,
            {
                "name": user.name,
                "link": f"{self._config.app_domain}/reset-password?token={token}",
            },
        )
        try:
            self._mailer.send(user.email, _RESET_SUBJECT, html)
        except DeliveryError:
            logger.warning("Reset email for user %s could not be delivered", user.id)
            return Err(AuthErrorKind.DELIVERY_FAILED)

        logger.info("Reset email sent for user %s", user.id)
        return Ok(None)

    def reset_password(self, token: str, new_password: str) -> Result[None]:
        try:
            claims = self._issuer.verify(token)
        except InvalidTokenError:
            return Err(AuthErrorKind.INVALID_OR_EXPIRED_TOKEN)

        user_id = claims.get("sub")
        email = claims.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str):
            return Err(AuthErrorKind.INVALID_OR_EXPIRED_TOKEN)

        user = self._users.get_by_id_and_email(user_id, email)
        if user is None:
            return Err(AuthErrorKind.USER_NOT_FOUND)

        self._users.update_password(user.id, hash_password(new_password))
        self._sessions.delete_by_user_id(user.id)
        logger.info("Password reset for user %s; session revoked", user.id)
        return Ok(None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _open_session(self, user_id: str) -> Session:
        """Replace the user's session with a freshly minted one.

        Raises DuplicateKeyError if a concurrent writer keeps winning for
        _MAX_SESSION_WRITES attempts in a row.
        """
        attempt = 0
        while True:
            attempt += 1
            self._sessions.delete_by_user_id(user_id)
            now = self._clock()
            candidate = Session(
                user_id=user_id,
                access_token=mint_opaque_token(self._config.token_bytes),
                refresh_token=mint_opaque_token(self._config.token_bytes),
                access_token_valid_until=now + self._config.access_token_ttl,
                refresh_token_valid_until=now + self._config.refresh_token_ttl,
            )
            try:
                return self._sessions.create(candidate)
            except DuplicateKeyError:
                if attempt >= _MAX_SESSION_WRITES:
                    raise
                logger.warning("Concurrent session write for user %s; retrying (%d)", user_id, attempt)
