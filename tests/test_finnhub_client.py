"""
Tests for Finnhub client error mapping and response caching.
"""

import asyncio

import httpx
import pytest

from config.settings import ConfigurationError, Settings
from data.finnhub_client import (
    CachePolicy,
    FinnhubClient,
    FinnhubMalformedResponseError,
    FinnhubRateLimitError,
    FinnhubUnauthorizedError,
    FinnhubUnreachableError,
)


def _client(settings, handler, cache_enabled=True):
    return FinnhubClient(settings=settings, cache_enabled=cache_enabled, transport=httpx.MockTransport(handler))


def _fetch(client, *args, **kwargs):
    async def run():
        try:
            return await client.fetch(*args, **kwargs)
        finally:
            await client.close()
    return asyncio.run(run())


@pytest.mark.parametrize(
    "status, error",
    [
        (401, FinnhubUnauthorizedError),
        (403, FinnhubUnauthorizedError),
        (429, FinnhubRateLimitError),
        (500, FinnhubUnreachableError),
        (404, FinnhubUnreachableError),
    ],
)
def test_status_codes_map_to_typed_errors(settings, status, error):
    client = _client(settings, lambda request: httpx.Response(status, text="nope"))

    with pytest.raises(error):
        _fetch(client, "/news", {"category": "general"})


def test_transport_error_is_unreachable(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FinnhubUnreachableError):
        _fetch(_client(settings, handler), "/news")


def test_non_json_body_is_malformed(settings):
    client = _client(settings, lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(FinnhubMalformedResponseError):
        _fetch(client, "/news")


def test_token_is_sent_as_query_param(settings):
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json=[])

    _fetch(_client(settings, handler), "/company-news", {"symbol": "AAPL"})

    assert seen[0].params["token"] == "test-key"
    assert seen[0].params["symbol"] == "AAPL"
    assert str(seen[0]).startswith("https://finnhub.io/api/v1/company-news")


def test_cached_response_is_reused_within_ttl(settings):
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(200, json=[{"id": 1}])

    policy = CachePolicy.for_seconds(3600)
    first = _fetch(_client(settings, handler), "/news", {"category": "general"}, policy)
    second = _fetch(_client(settings, handler), "/news", {"category": "general"}, policy)

    assert first == second == [{"id": 1}]
    assert len(calls) == 1
    cached = list(settings.cache_dir.glob("*.json"))
    assert len(cached) == 1
    assert "test-key" not in cached[0].name


def test_no_cache_policy_always_fetches(settings):
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(200, json=[])

    for _ in range(2):
        _fetch(_client(settings, handler), "/news", {"category": "general"}, CachePolicy.no_cache())

    assert len(calls) == 2


def test_company_news_rejects_non_list_body(settings):
    client = _client(settings, lambda request: httpx.Response(200, json={"error": "bad"}), cache_enabled=False)

    async def run():
        try:
            return await client.get_company_news("AAPL", "2026-10-13", "2026-10-18")
        finally:
            await client.close()

    with pytest.raises(FinnhubMalformedResponseError):
        asyncio.run(run())


def test_search_returns_result_rows(settings):
    body = {"count": 1, "result": [{"symbol": "AAPL", "description": "Apple Inc"}]}
    client = _client(settings, lambda request: httpx.Response(200, json=body), cache_enabled=False)

    async def run():
        try:
            return await client.search("apple")
        finally:
            await client.close()

    assert asyncio.run(run()) == body["result"]


def test_missing_api_key_is_configuration_error(tmp_path):
    settings = Settings(_env_file=None, finnhub_api_key=None, cache_dir=tmp_path)

    with pytest.raises(ConfigurationError):
        FinnhubClient(settings=settings)
