"""
Data clients and stores for the Market Digest pipeline.

Primary data source: Finnhub API
"""

from data.finnhub_client import (
    CachePolicy,
    FinnhubClient,
    FinnhubError,
    FinnhubMalformedResponseError,
    FinnhubRateLimitError,
    FinnhubUnauthorizedError,
    FinnhubUnreachableError,
)
from data.stores import (
    InMemoryUserStore,
    JsonUserStore,
    StoreError,
    Subscriber,
    SubscriberStore,
    WatchlistStore,
)

__all__ = [
    "CachePolicy",
    "FinnhubClient",
    "FinnhubError",
    "FinnhubMalformedResponseError",
    "FinnhubRateLimitError",
    "FinnhubUnauthorizedError",
    "FinnhubUnreachableError",
    "InMemoryUserStore",
    "JsonUserStore",
    "StoreError",
    "Subscriber",
    "SubscriberStore",
    "WatchlistStore",
]
