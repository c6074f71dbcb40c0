"""
Digest summarizer that uses an LLM to turn selected articles into email prose.

Failures never propagate: each call returns the generated text or a fixed
fallback message together with the reason it was used.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from config.settings import get_settings, Settings
from llm.base import LLMError, LLMProvider
from llm.factory import get_llm_provider
from news.models import Article

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"

NO_NEWS_MESSAGE = "<p>No market news available today.</p>"
SERVICE_ERROR_MESSAGE = "<p>Unable to fetch market news at this time. Please try again later.</p>"
DEFAULT_WELCOME_INTRO = "Welcome to Market Digest! We are thrilled to have you on board."


class SummaryFailure(Enum):
    """Why a fallback text was used instead of generated prose."""

    NO_DATA = "no_data"
    SERVICE_ERROR = "service_error"


@dataclass(frozen=True)
class SummaryResult:
    """Outcome of one summarization call."""

    text: str
    failure: Optional[SummaryFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "failure": self.failure.value if self.failure else None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SummaryResult":
        failure = data.get("failure")
        return cls(text=data["text"], failure=SummaryFailure(failure) if failure else None)


def _load_prompt(name: str, fallback: str) -> str:
    """Load a prompt template from the prompts directory."""
    prompt_path = PROMPTS_DIR / name
    if prompt_path.exists():
        return prompt_path.read_text()
    return fallback


class DigestSummarizer:
    """
    Produces the news summary for a digest and the intro for welcome emails.
    """

    def __init__(self, settings: Optional[Settings] = None, llm: Optional[LLMProvider] = None):
        """
        Initialize the summarizer.

        Args:
            settings: Application settings (uses defaults if not provided)
            llm: LLM provider (resolved from settings on first use if not provided)
        """
        self.settings = settings or get_settings()
        self._llm = llm
        self._news_prompt = _load_prompt(
            "news_summary.md",
            "Summarize these market news articles as short HTML paragraphs:\n\n{{newsData}}",
        )
        self._welcome_prompt = _load_prompt(
            "welcome_intro.md",
            "Write a short HTML welcome paragraph for this investor:\n{{userProfile}}",
        )

    @property
    def llm(self) -> LLMProvider:
        """Lazy-load the LLM provider."""
        if self._llm is None:
            self._llm = get_llm_provider(self.settings)
        return self._llm

    def build_news_prompt(self, articles: Sequence[Article]) -> str:
        """Embed the serialized article list into the summary prompt."""
        news_data = json.dumps([a.to_digest_dict() for a in articles], indent=2)
        return self._news_prompt.replace("{{newsData}}", news_data)

    async def summarize(self, articles: Sequence[Article]) -> SummaryResult:
        """
        Summarize a user's articles.

        Returns:
            SummaryResult with generated HTML, or a fallback message when the
            model returns nothing (NO_DATA) or the call fails (SERVICE_ERROR)
        """
        prompt = self.build_news_prompt(articles)

        try:
            response = await self.llm.generate(
                prompt,
                max_tokens=self.settings.summary_max_tokens,
                temperature=self.settings.summary_temperature,
            )
        except LLMError as e:
            logger.error(f"LLM error summarizing {len(articles)} articles: {e}")
            return SummaryResult(SERVICE_ERROR_MESSAGE, SummaryFailure.SERVICE_ERROR)
        except Exception as e:
            logger.exception(f"Unexpected error summarizing {len(articles)} articles: {e}")
            return SummaryResult(SERVICE_ERROR_MESSAGE, SummaryFailure.SERVICE_ERROR)

        text = (response.text or "").strip()
        if not text:
            return SummaryResult(NO_NEWS_MESSAGE, SummaryFailure.NO_DATA)

        logger.debug(f"Summarized {len(articles)} articles using {response.provider}/{response.model} ({response.total_tokens} tokens)")
        return SummaryResult(text)

    async def welcome_intro(self, profile: Dict[str, Any]) -> SummaryResult:
        """Personalized intro paragraph for a new subscriber."""
        user_profile = "\n".join(
            f"- {label} : {profile.get(key) or 'n/a'}"
            for label, key in (
                ("Country", "country"),
                ("Investment goals", "investment_goals"),
                ("Risk tolerance", "risk_tolerance"),
                ("Preferred industry", "preferred_industry"),
            )
        )
        prompt = self._welcome_prompt.replace("{{userProfile}}", user_profile)

        try:
            response = await self.llm.generate(
                prompt,
                max_tokens=512,
                temperature=self.settings.summary_temperature,
            )
        except Exception as e:
            logger.error(f"Welcome intro generation failed: {e}")
            return SummaryResult(DEFAULT_WELCOME_INTRO, SummaryFailure.SERVICE_ERROR)

        text = (response.text or "").strip()
        if not text:
            return SummaryResult(DEFAULT_WELCOME_INTRO, SummaryFailure.NO_DATA)
        return SummaryResult(text)
