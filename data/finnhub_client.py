"""
Finnhub API Client.
Rate-aware access to the market news and symbol lookup endpoints.
"""

import asyncio
import json
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from config.settings import get_settings, Settings
from utils.logging import log_api_call


class FinnhubError(Exception):
    """Finnhub API error."""
    pass


class FinnhubUnauthorizedError(FinnhubError):
    """API key rejected."""
    pass


class FinnhubRateLimitError(FinnhubError):
    """Rate limit exceeded."""
    pass


class FinnhubUnreachableError(FinnhubError):
    """Network failure, timeout or server-side error."""
    pass


class FinnhubMalformedResponseError(FinnhubError):
    """Response body was not the JSON shape the endpoint promises."""
    pass


@dataclass(frozen=True)
class CachePolicy:
    """How stale a cached response may be before it is fetched again."""

    max_age_seconds: int = 0

    @classmethod
    def no_cache(cls) -> "CachePolicy":
        return cls(0)

    @classmethod
    def for_seconds(cls, seconds: int) -> "CachePolicy":
        return cls(max(0, int(seconds)))

    @property
    def enabled(self) -> bool:
        return self.max_age_seconds > 0


class FinnhubClient:
    """
    Async client for the Finnhub API.

    Provides access to:
    - Company news for a single symbol
    - General market news by category
    - Symbol search
    - Company profiles

    No retries happen here; callers decide how to treat each failure.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None,
        cache_enabled: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Finnhub client.

        Args:
            api_key: Finnhub API key. If None, loads from settings.
            settings: Application settings.
            cache_enabled: Enable disk caching of responses.
            transport: Optional httpx transport (used by tests).
        """
        self.settings = settings or get_settings()
        self.api_key = api_key or self.settings.require_finnhub_key()
        self.base_url = self.settings.finnhub_base_url
        self.cache_enabled = cache_enabled
        self.cache_dir = Path(self.settings.cache_dir)

        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._in_flight = asyncio.Semaphore(max(1, self.settings.finnhub_max_concurrency))

    async def __aenter__(self) -> "FinnhubClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=30.0,
                limits=httpx.Limits(max_keepalive_connections=10),
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # =========================================================================
    # Response cache
    # =========================================================================

    def _get_cache_path(self, endpoint: str, params: Dict[str, Any]) -> Path:
        """Get cache file path for a request."""
        param_str = "_".join(f"{k}={v}" for k, v in sorted(params.items()) if k != "token")
        cache_key = f"{endpoint.strip('/').replace('/', '_')}_{param_str}.json"
        return self.cache_dir / cache_key

    def _is_cache_valid(self, cache_path: Path, max_age_seconds: int) -> bool:
        """Check if cache file is still valid."""
        if not cache_path.exists():
            return False

        mtime = datetime.fromtimestamp(cache_path.stat().st_mtime)
        return datetime.now() - mtime < timedelta(seconds=max_age_seconds)

    def _read_cache(self, cache_path: Path) -> Optional[Any]:
        """Read data from cache."""
        try:
            with open(cache_path, "r") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError):
            return None

    def _write_cache(self, cache_path: Path, data: Any) -> None:
        """Write data to cache."""
        try:
            cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(cache_path, "w") as f:
                json.dump(data, f)
        except OSError:
            pass  # A failed cache write only costs a refetch

    # =========================================================================
    # Transport
    # =========================================================================

    async def fetch(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        cache_policy: CachePolicy = CachePolicy.no_cache(),
    ) -> Any:
        """
        Make an API request.

        Args:
            endpoint: API endpoint (e.g., "/company-news")
            params: Query parameters (the API token is added here)
            cache_policy: How long a cached response stays usable

        Returns:
            Decoded JSON body

        Raises:
            FinnhubUnauthorizedError, FinnhubRateLimitError,
            FinnhubUnreachableError, FinnhubMalformedResponseError
        """
        params = dict(params or {})
        target = str(params.get("symbol") or params.get("q") or params.get("category") or "")

        use_cache = self.cache_enabled and cache_policy.enabled
        if use_cache:
            cache_path = self._get_cache_path(endpoint, params)
            if self._is_cache_valid(cache_path, cache_policy.max_age_seconds):
                cached_data = self._read_cache(cache_path)
                if cached_data is not None:
                    return cached_data

        params["token"] = self.api_key
        url = f"{self.base_url}{endpoint}"

        start = time.perf_counter()
        try:
            data = await self._send(url, params)
        except FinnhubError as e:
            log_api_call("finnhub", endpoint, target, False, (time.perf_counter() - start) * 1000, str(e))
            raise
        log_api_call("finnhub", endpoint, target, True, (time.perf_counter() - start) * 1000)

        if use_cache:
            self._write_cache(cache_path, data)

        return data

    async def _send(self, url: str, params: Dict[str, Any]) -> Any:
        client = await self._get_client()

        async with self._in_flight:
            try:
                response = await client.get(url, params=params)
            except httpx.TransportError as e:
                raise FinnhubUnreachableError(f"Finnhub unreachable: {e}") from e

        if response.status_code in (401, 403):
            raise FinnhubUnauthorizedError(f"Finnhub rejected credentials ({response.status_code})")
        if response.status_code == 429:
            raise FinnhubRateLimitError("Rate limit exceeded")
        if response.status_code >= 400:
            raise FinnhubUnreachableError(
                f"Finnhub API error: {response.status_code} {response.reason_phrase}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise FinnhubMalformedResponseError(f"Finnhub returned non-JSON body: {e}") from e

    # =========================================================================
    # News
    # =========================================================================

    async def get_company_news(self, symbol: str, from_date: str, to_date: str) -> List[Any]:
        """Get news for one symbol between two YYYY-MM-DD dates."""
        data = await self.fetch(
            "/company-news",
            params={"symbol": symbol, "from": from_date, "to": to_date},
            cache_policy=CachePolicy.for_seconds(self.settings.symbol_news_cache_seconds),
        )
        if not isinstance(data, list):
            raise FinnhubMalformedResponseError(f"company-news for {symbol} did not return a list")
        return data

    async def get_general_news(self, category: str = "general") -> List[Any]:
        """Get market-wide news for a category."""
        data = await self.fetch(
            "/news",
            params={"category": category, "minId": 0},
            cache_policy=CachePolicy.for_seconds(self.settings.general_news_cache_seconds),
        )
        if not isinstance(data, list):
            raise FinnhubMalformedResponseError(f"news/{category} did not return a list")
        return data

    # =========================================================================
    # Symbol lookup
    # =========================================================================

    async def search(self, query: str) -> List[Dict[str, Any]]:
        """Search symbols matching a free-text query."""
        data = await self.fetch(
            "/search",
            params={"q": query},
            cache_policy=CachePolicy.for_seconds(self.settings.search_cache_seconds),
        )
        if not isinstance(data, dict):
            raise FinnhubMalformedResponseError("search did not return an object")
        result = data.get("result")
        return result if isinstance(result, list) else []

    async def get_company_profile(self, symbol: str) -> Optional[Dict[str, Any]]:
        """
        Get company profile.

        Returns:
            Profile with symbol (ticker), name, exchange, or None if unknown
        """
        data = await self.fetch(
            "/stock/profile2",
            params={"symbol": symbol},
            cache_policy=CachePolicy.for_seconds(self.settings.profile_cache_seconds),
        )
        if not isinstance(data, dict):
            raise FinnhubMalformedResponseError(f"profile2 for {symbol} did not return an object")
        return data or None
