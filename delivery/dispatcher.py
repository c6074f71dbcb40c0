"""
Dispatcher that renders and sends digest emails, one recipient at a time.

A failed send is reported in the returned DeliveryResult and never raised, so
one bad address or transport hiccup cannot abort a batch.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from delivery.templates import NEWS_SUMMARY_TEMPLATE_ID, WELCOME_TEMPLATE_ID, render_template
from delivery.transport import EmailTransport
from utils.helpers import gather_bounded

logger = logging.getLogger(__name__)

NEWS_SUMMARY_TEXT = "Today's market news summary from Market Digest"


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one send."""

    email: str
    sent: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"email": self.email, "sent": self.sent, "error": self.error}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeliveryResult":
        return cls(email=data["email"], sent=bool(data["sent"]), error=data.get("error"))


@dataclass(frozen=True)
class EmailJob:
    """Everything needed to render and send one message."""

    recipient: str
    subject: str
    template_id: str
    substitutions: Mapping[str, str]
    text: Optional[str] = None


def news_summary_subject(date: str) -> str:
    return f"Market News Summary Today - {date}"


class Dispatcher:
    """Renders templates and hands them to an email transport."""

    def __init__(self, transport: EmailTransport, max_concurrent: int = 5):
        self.transport = transport
        self.max_concurrent = max_concurrent

    async def send(
        self,
        recipient: str,
        subject: str,
        template_id: str,
        substitutions: Mapping[str, str],
        text: Optional[str] = None,
    ) -> DeliveryResult:
        """Render and send one email."""
        try:
            html = render_template(template_id, substitutions)
            await self.transport.send(recipient, subject, html, text)
        except Exception as e:
            logger.error(f"Failed to send '{template_id}' email to {recipient}: {e}")
            return DeliveryResult(email=recipient, sent=False, error=str(e))

        logger.info(f"Sent '{template_id}' email to {recipient}")
        return DeliveryResult(email=recipient, sent=True)

    async def send_news_summary(self, email: str, date: str, news_content: str) -> DeliveryResult:
        return await self.send(
            email,
            news_summary_subject(date),
            NEWS_SUMMARY_TEMPLATE_ID,
            {"date": date, "newsContent": news_content},
            text=NEWS_SUMMARY_TEXT,
        )

    async def send_welcome(self, email: str, name: str, intro: str) -> DeliveryResult:
        return await self.send(
            email,
            "Welcome to Market Digest - your journey to smarter investing starts here",
            WELCOME_TEMPLATE_ID,
            {"name": name, "intro": intro},
        )

    async def send_batch(self, jobs: Iterable[EmailJob]) -> List[DeliveryResult]:
        """Send independent jobs concurrently; results follow job order."""
        async def run(job: EmailJob) -> DeliveryResult:
            return await self.send(job.recipient, job.subject, job.template_id, job.substitutions, job.text)

        return await gather_bounded(list(jobs), run, self.max_concurrent)
