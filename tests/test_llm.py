"""
Tests for provider selection and transient-error retries.
"""

import asyncio

import pytest

from llm.base import (
    Generation,
    LLMConnectionError,
    LLMError,
    LLMNotConfiguredError,
    LLMRateLimitError,
    is_retryable,
    retry_transient,
)
from llm.factory import create_provider, get_llm_provider, reset_provider
from llm.gemini_provider import GeminiProvider
from llm.openai_provider import OpenAIProvider
from synthesis.digest_summarizer import SERVICE_ERROR_MESSAGE, DigestSummarizer, SummaryFailure


@pytest.fixture(autouse=True)
def fresh_providers():
    reset_provider()
    yield
    reset_provider()


def test_selects_configured_provider(settings):
    settings.gemini_api_key = "g-key"
    settings.openai_api_key = "o-key"

    assert isinstance(create_provider("gemini", settings), GeminiProvider)
    openai_provider = create_provider("openai", settings)
    assert isinstance(openai_provider, OpenAIProvider)
    assert openai_provider.model == settings.openai_model


def test_missing_key_is_not_configured(settings):
    settings.gemini_api_key = None

    with pytest.raises(LLMNotConfiguredError, match="GEMINI_API_KEY"):
        create_provider("gemini", settings)


def test_unknown_provider_is_rejected(settings):
    with pytest.raises(LLMError, match="Unknown LLM provider"):
        create_provider("llama", settings)


def test_provider_is_built_once(settings):
    settings.gemini_api_key = "g-key"

    assert get_llm_provider(settings) is get_llm_provider(settings)


def test_summarizer_without_credentials_falls_back(settings):
    settings.gemini_api_key = None

    result = asyncio.run(DigestSummarizer(settings).summarize([]))

    assert result.failure == SummaryFailure.SERVICE_ERROR
    assert result.text == SERVICE_ERROR_MESSAGE


def test_only_rate_limits_and_outages_are_retried():
    assert is_retryable(LLMRateLimitError("429"))
    assert is_retryable(LLMConnectionError("timeout"))
    assert not is_retryable(LLMError("bad request"))


def test_retry_transient_recovers_after_rate_limit(monkeypatch):
    async def no_sleep(_):
        return None

    monkeypatch.setattr(asyncio, "sleep", no_sleep)
    attempts = []

    @retry_transient
    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise LLMRateLimitError("429")
        return Generation(text="ok", model="m", provider="p")

    assert asyncio.run(flaky()).text == "ok"
    assert len(attempts) == 3


def test_retry_transient_gives_up_on_permanent_error():
    attempts = []

    @retry_transient
    async def broken():
        attempts.append(1)
        raise LLMError("invalid model")

    with pytest.raises(LLMError):
        asyncio.run(broken())
    assert len(attempts) == 1
