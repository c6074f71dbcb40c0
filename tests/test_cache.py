"""
Tests for the in-process TTL cache.
"""

from news.cache import TTLCache


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = Clock()
    cache = TTLCache(ttl_seconds=30, clock=clock)
    cache.set("apple", ["AAPL"])

    clock.now = 29.9
    assert cache.get("apple") == ["AAPL"]

    clock.now = 30.0
    assert cache.get("apple") is None
    assert len(cache) == 0


def test_oldest_entry_is_evicted_when_full():
    cache = TTLCache(ttl_seconds=60, max_entries=2, clock=Clock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert "a" not in cache
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_reset_refreshes_expiry():
    clock = Clock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("k", "old")
    clock.now = 8
    cache.set("k", "new")
    clock.now = 15

    assert cache.get("k") == "new"
