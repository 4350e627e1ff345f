"""
tests/helpers.py -- Test doubles and builders shared by unit and API tests.

Kept out of conftest.py so test modules can import them directly
(from tests.helpers import FakeClock) without importing conftest twice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from auth.service import AuthService
from auth.store import SessionStore, UserStore
from contacts.store import ContactStore
from core.config import AuthConfig
from notify.mailer import DeliveryError
from notify.renderer import TemplateRenderer

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters"
APP_DOMAIN = "https://app.contactvault.example.com"


class FakeClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@dataclass
class SentMail:
    to: str
    subject: str
    html: str


@dataclass
class RecordingMailer:
    """Mailer double: records messages, or raises DeliveryError when fail=True."""

    fail: bool = False
    sent: list[SentMail] = field(default_factory=list)

    def send(self, to_address: str, subject: str, html_body: str) -> None:
        if self.fail:
            raise DeliveryError("relay unavailable")
        self.sent.append(SentMail(to_address, subject, html_body))


def build_service(
    users: UserStore,
    sessions: SessionStore,
    clock: FakeClock,
    mailer: RecordingMailer,
) -> AuthService:
    return AuthService(
        config=AuthConfig(signing_secret=TEST_SECRET, app_domain=APP_DOMAIN),
        users=users,
        sessions=sessions,
        mailer=mailer,
        renderer=TemplateRenderer(),
        clock=clock,
    )


@dataclass
class ApiHarness:
    """What the api_client fixture yields: the client plus the doubles behind it."""

    client: TestClient
    clock: FakeClock
    mailer: RecordingMailer
    users: UserStore
    sessions: SessionStore
    contacts: ContactStore
