"""
Summarization of digest articles.

Uses an LLM to turn selected news articles into email-ready prose.
"""

from synthesis.digest_summarizer import (
    DigestSummarizer,
    SummaryFailure,
    SummaryResult,
    NO_NEWS_MESSAGE,
    SERVICE_ERROR_MESSAGE,
    DEFAULT_WELCOME_INTRO,
)

__all__ = [
    "DigestSummarizer",
    "SummaryFailure",
    "SummaryResult",
    "NO_NEWS_MESSAGE",
    "SERVICE_ERROR_MESSAGE",
    "DEFAULT_WELCOME_INTRO",
]
