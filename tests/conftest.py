"""
Pytest configuration and fixtures.
"""

import os
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import Settings
from data.finnhub_client import FinnhubError
from delivery.transport import EmailTransport, TransportError
from llm.base import Generation, LLMProvider


def make_item(
    id: int,
    ts: int,
    headline: Optional[str] = None,
    url: Optional[str] = None,
    source: str = "Reuters",
    summary: str = "Summary text",
) -> Dict[str, Any]:
    """A raw provider news item."""
    return {
        "id": id,
        "headline": headline or f"Headline {id}",
        "summary": summary,
        "source": source,
        "url": url or f"https://example.com/news/{id}",
        "image": "",
        "category": "company",
        "datetime": ts,
        "related": "",
    }


class FakeFinnhubClient:
    """
    Scripted stand-in for FinnhubClient.

    company_news maps a symbol to a list of per-call responses; the last one
    repeats once the list is used up. A response that is an exception is raised.
    """

    def __init__(
        self,
        company_news: Optional[Dict[str, List[Any]]] = None,
        general_news: Any = None,
        search_results: Any = None,
        profiles: Optional[Dict[str, Any]] = None,
    ):
        self.company_news = company_news or {}
        self.general_news = general_news if general_news is not None else []
        self.search_results = search_results if search_results is not None else []
        self.profiles = profiles or {}
        self.calls: List[tuple] = []

    @staticmethod
    def _resolve(response: Any) -> Any:
        if isinstance(response, Exception):
            raise response
        return response

    async def get_company_news(self, symbol: str, from_date: str, to_date: str) -> List[Any]:
        self.calls.append(("company-news", symbol))
        script = self.company_news.get(symbol, [[]])
        count = sum(1 for c in self.calls if c == ("company-news", symbol))
        return self._resolve(script[min(count, len(script)) - 1])

    async def get_general_news(self, category: str = "general") -> List[Any]:
        self.calls.append(("news", category))
        return self._resolve(self.general_news)

    async def search(self, query: str) -> List[Dict[str, Any]]:
        self.calls.append(("search", query))
        return self._resolve(self.search_results)

    async def get_company_profile(self, symbol: str) -> Optional[Dict[str, Any]]:
        self.calls.append(("profile", symbol))
        return self._resolve(self.profiles.get(symbol))


class FakeLLM(LLMProvider):
    """Returns canned text; raises when `fail_when(prompt)` is true."""

    name = "fake"

    def __init__(self, text: str = "<p>Summary</p>", fail_when: Optional[Callable[[str], bool]] = None, error: Optional[Exception] = None):
        self.text = text
        self.fail_when = fail_when
        self.error = error
        self.prompts: List[str] = []

    @property
    def model(self) -> str:
        return "fake-model"

    def is_configured(self) -> bool:
        return True

    async def generate(self, prompt, max_tokens=2048, temperature=0.3):
        self.prompts.append(prompt)
        if self.fail_when is not None and self.fail_when(prompt):
            raise self.error
        return Generation(text=self.text, model="fake-model", provider="fake", input_tokens=1, output_tokens=1)


class FakeTransport(EmailTransport):
    """Records sends; raises TransportError for addresses in `fail_for`."""

    def __init__(self, fail_for: Sequence[str] = ()):
        self.fail_for = set(fail_for)
        self.sent: List[tuple] = []
        self.attempts: List[str] = []

    async def send(self, to, subject, html, text=None):
        self.attempts.append(to)
        if to in self.fail_for:
            raise TransportError(f"mailbox unavailable: {to}")
        self.sent.append((to, subject, html))


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and the working tree."""
    return Settings(
        _env_file=None,
        finnhub_api_key="test-key",
        cache_dir=tmp_path / "cache",
        checkpoint_dir=tmp_path / "checkpoints",
        store_path=tmp_path / "users.json",
        digest_concurrency=3,
    )


@pytest.fixture
def provider_error():
    return FinnhubError("boom")
