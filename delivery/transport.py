"""
Email transports.

The SMTP transport wraps the blocking smtplib client and runs it in a worker
thread so sends do not stall the event loop.
"""

import asyncio
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr
from typing import List, Optional, Tuple

from ratelimit import limits, sleep_and_retry

from config.settings import ConfigurationError, Settings, get_settings


class TransportError(Exception):
    """A message could not be handed to the mail server."""
    pass


class EmailTransport(ABC):
    """Sends one fully rendered message."""

    @abstractmethod
    async def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        """Deliver a message. Raises TransportError on failure."""
        pass


class SmtpTransport(EmailTransport):
    """
    SMTP transport authenticated with the account from settings.

    Port 465 uses implicit TLS; any other port upgrades with STARTTLS.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        if not self.settings.smtp_user or not self.settings.smtp_password:
            raise ConfigurationError("SMTP_USER and SMTP_PASSWORD are required to send email")

        self.sender = formataddr((self.settings.mail_from_name, self.settings.smtp_user))
        # Throttle across worker threads to stay under the provider's send quota
        self._deliver = sleep_and_retry(
            limits(calls=max(1, self.settings.smtp_sends_per_minute), period=60)(self._deliver_now)
        )

    def _build_message(self, to: str, subject: str, html: str, text: Optional[str]) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text or "Your market news summary is best viewed in an HTML-capable client.")
        message.add_alternative(html, subtype="html")
        return message

    def _deliver_now(self, message: EmailMessage) -> None:
        host, port = self.settings.smtp_host, self.settings.smtp_port
        context = ssl.create_default_context()
        if port == 465:
            with smtplib.SMTP_SSL(host, port, context=context, timeout=30) as server:
                server.login(self.settings.smtp_user, self.settings.smtp_password)
                server.send_message(message)
        else:
            with smtplib.SMTP(host, port, timeout=30) as server:
                server.starttls(context=context)
                server.login(self.settings.smtp_user, self.settings.smtp_password)
                server.send_message(message)

    async def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        message = self._build_message(to, subject, html, text)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(f"SMTP delivery to {to} failed: {e}") from e


class RecordingTransport(EmailTransport):
    """Keeps messages in memory instead of sending them. Used for dry runs."""

    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []

    async def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        self.sent.append((to, subject, html))
