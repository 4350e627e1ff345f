"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for ContactVault happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Two shapes of configuration:
  Settings (BaseSettings): the mutable, environment-driven view. Field names
      map to env var names (e.g. secret_key -> SECRET_KEY). Cached once by
      get_settings().

  AuthConfig (frozen dataclass): the immutable value handed to AuthService at
      construction. The service never reads Settings itself, so tests build an
      AuthConfig directly with whatever secret and windows they need.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. HS256 reset tokens
  are only as strong as the key that signs them.

  In production mode (DEBUG not set or false), a missing SECRET_KEY is a hard
  startup failure. A random per-process key would silently invalidate every
  outstanding reset link on restart.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
contacts/, or notify/.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("contactvault.config")


@dataclass(frozen=True)
class AuthConfig:
    """Immutable auth parameters injected into AuthService."""

    signing_secret: str
    app_domain: str
    access_token_ttl: timedelta = timedelta(minutes=15)
    refresh_token_ttl: timedelta = timedelta(days=30)
    reset_token_ttl: timedelta = timedelta(minutes=5)
    token_bytes: int = 30


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = ""  # empty -> SQLite file next to auth/store.py
    log_level: str = "INFO"

    # Base URL of the front end; reset links point at {app_domain}/reset-password
    app_domain: str = "http://localhost:3000"

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    secure_cookies: bool = False
    access_token_minutes: int = 15
    refresh_token_days: int = 30
    reset_token_minutes: int = 5

    # ------------------------------------------------------------------
    # SMTP (password reset delivery)
    # ------------------------------------------------------------------

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "no-reply@contactvault.local"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Reset links will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Reset tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    def auth_config(self) -> AuthConfig:
        """Freeze the auth-relevant settings into the value AuthService consumes."""
        return AuthConfig(
            signing_secret=self.secret_key,
            app_domain=self.app_domain.rstrip("/"),
            access_token_ttl=timedelta(minutes=self.access_token_minutes),
            refresh_token_ttl=timedelta(days=self.refresh_token_days),
            reset_token_ttl=timedelta(minutes=self.reset_token_minutes),
        )


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
