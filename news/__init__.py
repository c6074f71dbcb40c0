"""
News aggregation for the Market Digest pipeline.

Modules:
- models: Article, symbol canonicalization and validation
- aggregator: round-robin symbol news, general news and symbol search
- cache: short-lived in-process cache used by symbol search
"""

from news.models import AggregationResult, Article, canonical_symbol, clean_symbols, is_valid_article
from news.aggregator import NewsAggregator, StockSearchResult, MAX_ARTICLES, MAX_ROUNDS

__all__ = [
    "AggregationResult",
    "Article",
    "canonical_symbol",
    "clean_symbols",
    "is_valid_article",
    "NewsAggregator",
    "StockSearchResult",
    "MAX_ARTICLES",
    "MAX_ROUNDS",
]
