"""
Article and symbol types shared by aggregation, summarization and delivery.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple


def canonical_symbol(symbol: str) -> str:
    """Canonical ticker form: trimmed and uppercase."""
    return symbol.strip().upper()


def clean_symbols(symbols: Iterable[str]) -> List[str]:
    """
    Canonicalize, drop blanks and remove duplicates, keeping first-seen order.

    >>> clean_symbols([" aapl", "MSFT", "", "AAPL"])
    ['AAPL', 'MSFT']
    """
    seen = set()
    cleaned = []
    for symbol in symbols:
        s = canonical_symbol(symbol)
        if s and s not in seen:
            seen.add(s)
            cleaned.append(s)
    return cleaned


def is_valid_article(item: Any) -> bool:
    """Minimal schema check for a raw provider news item."""
    if not isinstance(item, dict):
        return False
    for key in ("headline", "summary", "source", "url"):
        value = item.get(key)
        if not isinstance(value, str) or not value.strip():
            return False
    ts = item.get("datetime")
    if isinstance(ts, bool) or not isinstance(ts, (int, float)) or not math.isfinite(ts):
        return False
    try:
        datetime.fromtimestamp(ts, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return False
    return True


@dataclass(frozen=True)
class Article:
    """A single news article as selected for a digest."""

    id: str
    headline: str
    summary: str
    source: str
    url: str
    published_at: datetime
    image: Optional[str] = None
    symbol: Optional[str] = None

    @classmethod
    def from_provider(cls, item: Dict[str, Any], symbol: Optional[str] = None) -> "Article":
        """Build from a provider item that already passed is_valid_article."""
        return cls(
            id=str(item.get("id", "")),
            headline=item["headline"],
            summary=item["summary"],
            source=item["source"],
            url=item["url"],
            published_at=datetime.fromtimestamp(item["datetime"], tz=timezone.utc),
            image=item.get("image") or None,
            symbol=symbol,
        )

    @property
    def symbol_key(self) -> str:
        """Deduplication key for symbol-scoped fetches."""
        return self.id

    @property
    def general_key(self) -> Tuple[str, str, str]:
        """Deduplication key for general-category fetches."""
        return (self.id, self.url, self.headline)

    def to_digest_dict(self) -> Dict[str, str]:
        """The fields handed to the summarizer."""
        return {
            "headline": self.headline,
            "summary": self.summary,
            "source": self.source,
            "url": self.url,
            "datetime": self.published_at.isoformat(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "headline": self.headline,
            "summary": self.summary,
            "source": self.source,
            "url": self.url,
            "published_at": self.published_at.isoformat(),
            "image": self.image,
            "symbol": self.symbol,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        return cls(
            id=data["id"],
            headline=data["headline"],
            summary=data["summary"],
            source=data["source"],
            url=data["url"],
            published_at=datetime.fromisoformat(data["published_at"]),
            image=data.get("image"),
            symbol=data.get("symbol"),
        )


@dataclass(frozen=True)
class AggregationResult:
    """Articles selected by one aggregation call."""

    articles: Tuple[Article, ...] = ()
    degraded: bool = False

    def __len__(self) -> int:
        return len(self.articles)


def sort_newest_first(articles: Iterable[Article]) -> List[Article]:
    """Stable sort by publication time, newest first."""
    return sorted(articles, key=lambda a: a.published_at, reverse=True)
