"""
Tests for digest summarization and its fallbacks.
"""

import asyncio
import json

from conftest import FakeLLM, make_item
from llm.base import LLMConnectionError
from news.models import Article
from synthesis.digest_summarizer import (
    DEFAULT_WELCOME_INTRO,
    NO_NEWS_MESSAGE,
    SERVICE_ERROR_MESSAGE,
    DigestSummarizer,
    SummaryFailure,
    SummaryResult,
)


def _articles():
    return [Article.from_provider(make_item(1, 1_700_000_000, headline="Apple beats estimates"), "AAPL")]


def test_prompt_embeds_serialized_articles(settings):
    summarizer = DigestSummarizer(settings, llm=FakeLLM())

    prompt = summarizer.build_news_prompt(_articles())

    assert "{{newsData}}" not in prompt
    payload = json.dumps([a.to_digest_dict() for a in _articles()], indent=2)
    assert payload in prompt


def test_successful_summary(settings):
    llm = FakeLLM(text="  <p>Apple rallied.</p>\n")

    result = asyncio.run(DigestSummarizer(settings, llm=llm).summarize(_articles()))

    assert result == SummaryResult("<p>Apple rallied.</p>")
    assert result.ok
    assert "Apple beats estimates" in llm.prompts[0]


def test_empty_article_list_is_still_summarized(settings):
    llm = FakeLLM()

    asyncio.run(DigestSummarizer(settings, llm=llm).summarize([]))

    assert "[]" in llm.prompts[0]


def test_empty_model_output_is_no_data(settings):
    result = asyncio.run(DigestSummarizer(settings, llm=FakeLLM(text="   ")).summarize(_articles()))

    assert result.text == NO_NEWS_MESSAGE
    assert result.failure == SummaryFailure.NO_DATA


def test_llm_error_is_service_error(settings):
    llm = FakeLLM(fail_when=lambda prompt: True, error=LLMConnectionError("timeout"))

    result = asyncio.run(DigestSummarizer(settings, llm=llm).summarize(_articles()))

    assert result.text == SERVICE_ERROR_MESSAGE
    assert result.failure == SummaryFailure.SERVICE_ERROR


def test_unexpected_error_is_service_error(settings):
    llm = FakeLLM(fail_when=lambda prompt: True, error=RuntimeError("bug"))

    result = asyncio.run(DigestSummarizer(settings, llm=llm).summarize(_articles()))

    assert result.failure == SummaryFailure.SERVICE_ERROR


def test_welcome_intro_embeds_profile_and_falls_back(settings):
    llm = FakeLLM(text="<p>Hi investor from Canada</p>")
    summarizer = DigestSummarizer(settings, llm=llm)

    result = asyncio.run(summarizer.welcome_intro({"country": "Canada", "risk_tolerance": "Low"}))

    assert result.text == "<p>Hi investor from Canada</p>"
    assert "- Country : Canada" in llm.prompts[0]
    assert "- Risk tolerance : Low" in llm.prompts[0]

    failing = DigestSummarizer(settings, llm=FakeLLM(fail_when=lambda p: True, error=LLMConnectionError("x")))
    fallback = asyncio.run(failing.welcome_intro({}))
    assert fallback.text == DEFAULT_WELCOME_INTRO
