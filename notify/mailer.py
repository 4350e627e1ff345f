"""
notify/mailer.py -- E-mail delivery for password-reset links.

Mailer is the shape AuthService depends on: send(to, subject, html). Any
delivery failure must surface as DeliveryError so the service can report it
without catching unrelated exceptions.

SmtpMailer is the production implementation (smtplib + STARTTLS). Tests use
a recording double defined in tests/helpers.py.
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

logger = logging.getLogger("contactvault.notify")


class DeliveryError(Exception):
    """Raised when a message could not be handed to the mail server."""


class Mailer(Protocol):
    def send(self, to_address: str, subject: str, html_body: str) -> None: ...


class SmtpMailer:
    """Send HTML messages through an SMTP relay.

    STARTTLS is attempted whenever the server advertises it. Login is only
    performed when both user and password are configured, so a local relay
    (mailhog, postfix on localhost) works without credentials.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        user: str = "",
        password: str = "",
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.user = user
        self.password = password
        self.timeout = timeout

    def send(self, to_address: str, subject: str, html_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_address
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP delivery to %s:%d failed: %s", self.host, self.port, exc)
            raise DeliveryError(str(exc)) from exc
