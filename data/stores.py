"""
Read-only views onto the subscriber and watchlist stores.

The pipeline never writes to either store; watchlist edits happen elsewhere.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from news.models import clean_symbols

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The subscriber population could not be read."""
    pass


@dataclass(frozen=True)
class Subscriber:
    """A user eligible to receive the scheduled digest."""

    id: str
    email: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "email": self.email, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "Subscriber":
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            email=str(data["email"]),
            name=str(data.get("name") or ""),
        )


class SubscriberStore(ABC):
    """Source of digest recipients."""

    @abstractmethod
    async def list_all_digest_recipients(self) -> List[Subscriber]:
        """Return every subscriber. Raises StoreError when the store is unusable."""
        pass


class WatchlistStore(ABC):
    """Source of tracked symbols per user."""

    @abstractmethod
    async def list_symbols_for_user(self, email: str) -> List[str]:
        """Return the user's symbols in insertion order; never raises."""
        pass


class InMemoryUserStore(SubscriberStore, WatchlistStore):
    """Both stores backed by plain Python collections."""

    def __init__(
        self,
        subscribers: Optional[Iterable[Subscriber]] = None,
        watchlists: Optional[Dict[str, List[str]]] = None,
    ):
        self.subscribers = list(subscribers or [])
        self.watchlists = dict(watchlists or {})

    async def list_all_digest_recipients(self) -> List[Subscriber]:
        return list(self.subscribers)

    async def list_symbols_for_user(self, email: str) -> List[str]:
        return clean_symbols(self.watchlists.get(email, []))


class JsonUserStore(SubscriberStore, WatchlistStore):
    """
    Both stores backed by one JSON document:

        {"users": [{"id": "...", "email": "...", "name": "..."}],
         "watchlists": {"user@example.com": ["AAPL", "MSFT"]}}
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict:
        with open(self.path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("store document must be a JSON object")
        return data

    async def list_all_digest_recipients(self) -> List[Subscriber]:
        try:
            data = self._load()
            return [Subscriber.from_dict(u) for u in data.get("users", []) if u.get("email")]
        except (OSError, ValueError, KeyError, AttributeError) as e:
            raise StoreError(f"Cannot read subscribers from {self.path}: {e}") from e

    async def list_symbols_for_user(self, email: str) -> List[str]:
        try:
            data = self._load()
            symbols = data.get("watchlists", {}).get(email, [])
            if not isinstance(symbols, list):
                logger.warning(f"Ignoring malformed watchlist for {email}: {symbols!r}")
                return []
            return clean_symbols(s for s in symbols if isinstance(s, str))
        except (OSError, ValueError, AttributeError, TypeError) as e:
            logger.error(f"Error fetching watchlist symbols for {email}: {e}")
            return []
