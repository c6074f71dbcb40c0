"""
News aggregator that turns watchlist symbols into a bounded, ordered article set.

Coordinates Finnhub calls across symbols, deduplicates and caps the result.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from config import POPULAR_SYMBOLS
from config.settings import get_settings, Settings
from data.finnhub_client import FinnhubClient, FinnhubError
from news.cache import TTLCache
from news.models import (
    AggregationResult,
    Article,
    clean_symbols,
    is_valid_article,
    sort_newest_first,
)
from utils.helpers import get_date_range

logger = logging.getLogger(__name__)

MAX_ARTICLES = 6
MAX_ROUNDS = 6
POPULAR_LOOKUP_LIMIT = 10


@dataclass(frozen=True)
class StockSearchResult:
    """One row of a symbol search."""

    symbol: str
    name: str
    exchange: str = ""
    type: str = ""
    display_symbol: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "exchange": self.exchange,
            "type": self.type,
            "displaySymbol": self.display_symbol,
        }


class NewsAggregator:
    """
    Fetches market news for a set of symbols, or general news when there are none.

    Every call returns at most MAX_ARTICLES articles, deduplicated and sorted
    newest first. Deduplication state lives only for the duration of one call.
    """

    def __init__(
        self,
        client: FinnhubClient,
        settings: Optional[Settings] = None,
        max_articles: int = MAX_ARTICLES,
        max_rounds: int = MAX_ROUNDS,
    ):
        """
        Initialize the aggregator.

        Args:
            client: Finnhub API client
            settings: Application settings
            max_articles: Cap on returned articles
            max_rounds: Round-robin passes over the symbol list
        """
        self.client = client
        self.settings = settings or get_settings()
        self.max_articles = max_articles
        self.max_rounds = max_rounds
        self._search_cache: TTLCache[List[StockSearchResult]] = TTLCache(
            ttl_seconds=self.settings.search_cache_seconds,
        )

    async def aggregate(self, symbols: Optional[Iterable[str]] = None) -> AggregationResult:
        """
        Collect news for the given symbols.

        Symbols are cycled round-robin, one provider call per symbol per round,
        until the cap is reached or the round limit runs out. A failed call only
        skips that symbol for that round. With no usable symbols this is the
        same as aggregate_general().
        """
        cleaned = clean_symbols(symbols or [])
        if not cleaned:
            return await self.aggregate_general()

        from_date, to_date = get_date_range(self.settings.news_lookback_days)
        articles: List[Article] = []
        seen_ids: Set[str] = set()
        calls = 0
        failures = 0

        for round_number in range(self.max_rounds):
            if len(articles) >= self.max_articles:
                break

            for symbol in cleaned:
                if len(articles) >= self.max_articles:
                    break

                calls += 1
                try:
                    items = await self.client.get_company_news(symbol, from_date, to_date)
                except FinnhubError as e:
                    failures += 1
                    logger.warning(f"Error fetching news for {symbol} (round {round_number + 1}): {e}")
                    continue

                for item in items:
                    if len(articles) >= self.max_articles:
                        break
                    if not is_valid_article(item):
                        continue
                    article = Article.from_provider(item, symbol)
                    if article.symbol_key in seen_ids:
                        continue
                    seen_ids.add(article.symbol_key)
                    articles.append(article)

        degraded = calls > 0 and failures == calls
        if degraded:
            logger.error(f"All {calls} news calls failed for symbols {cleaned}")

        logger.debug(f"Aggregated {len(articles)} articles for {cleaned} in {calls} calls")
        return AggregationResult(articles=tuple(sort_newest_first(articles)), degraded=degraded)

    async def aggregate_general(self) -> AggregationResult:
        """
        Collect general-category market news.

        Provider ids are not unique across categories, so articles are keyed by
        (id, url, headline) here.
        """
        try:
            items = await self.client.get_general_news("general")
        except FinnhubError as e:
            logger.error(f"Error fetching general news: {e}")
            return AggregationResult(articles=(), degraded=True)

        articles: List[Article] = []
        seen_keys: Set[Tuple[str, str, str]] = set()

        for item in items:
            if len(articles) >= self.max_articles:
                break
            if not is_valid_article(item):
                continue
            article = Article.from_provider(item)
            if article.general_key in seen_keys:
                continue
            seen_keys.add(article.general_key)
            articles.append(article)

        return AggregationResult(articles=tuple(sort_newest_first(articles)), degraded=False)

    # =========================================================================
    # Symbol search
    # =========================================================================

    async def search_symbols(self, query: Optional[str] = None) -> List[StockSearchResult]:
        """
        Interactive symbol lookup.

        An empty query lists profiles for the popular symbols; anything else is
        a provider search. Results are memoized per query for a short time.
        """
        text = (query or "").strip()
        cache_key = text.lower()

        cached = self._search_cache.get(cache_key)
        if cached is not None:
            return list(cached)

        if not text:
            results = await self._popular_profiles()
        else:
            try:
                rows = await self.client.search(text)
            except FinnhubError as e:
                logger.error(f'Error searching for stocks with query "{text}": {e}')
                return []
            results = [r for r in (self._search_row(row) for row in rows) if r is not None]

        self._search_cache.set(cache_key, results)
        return list(results)

    async def _popular_profiles(self) -> List[StockSearchResult]:
        results = []
        for symbol in POPULAR_SYMBOLS[:POPULAR_LOOKUP_LIMIT]:
            try:
                profile = await self.client.get_company_profile(symbol)
            except FinnhubError as e:
                logger.warning(f"Error fetching profile for {symbol}: {e}")
                continue

            profile = profile or {}
            ticker = str(profile.get("ticker") or profile.get("symbol") or "")
            if not ticker:
                continue

            results.append(StockSearchResult(
                symbol=ticker.upper(),
                name=profile.get("name") or ticker,
                exchange=profile.get("exchange") or "US",
                type="Common Stock",
                display_symbol=ticker,
            ))
        return results

    @staticmethod
    def _search_row(row: Any) -> Optional[StockSearchResult]:
        if not isinstance(row, dict) or not isinstance(row.get("symbol"), str):
            return None
        return StockSearchResult(
            symbol=row["symbol"].upper(),
            name=row.get("description") or row["symbol"],
            exchange=row.get("exchange") or "",
            type=row.get("type") or "",
            display_symbol=row.get("displaySymbol") or row["symbol"],
        )
