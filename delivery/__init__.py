"""
Email rendering and delivery.
"""

from delivery.dispatcher import DeliveryResult, Dispatcher, EmailJob, news_summary_subject
from delivery.templates import (
    NEWS_SUMMARY_TEMPLATE_ID,
    WELCOME_TEMPLATE_ID,
    render,
    render_template,
)
from delivery.transport import EmailTransport, RecordingTransport, SmtpTransport, TransportError

__all__ = [
    "DeliveryResult",
    "Dispatcher",
    "EmailJob",
    "news_summary_subject",
    "NEWS_SUMMARY_TEMPLATE_ID",
    "WELCOME_TEMPLATE_ID",
    "render",
    "render_template",
    "EmailTransport",
    "RecordingTransport",
    "SmtpTransport",
    "TransportError",
]
