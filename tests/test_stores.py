"""
Tests for the subscriber and watchlist stores.
"""

import asyncio
import json

import pytest

from data.stores import InMemoryUserStore, JsonUserStore, StoreError, Subscriber


def test_json_store_reads_users_and_cleans_watchlists(tmp_path):
    path = tmp_path / "users.json"
    path.write_text(json.dumps({
        "users": [
            {"id": "u1", "email": "one@example.com", "name": "One"},
            {"id": "u2", "name": "No email"},
        ],
        "watchlists": {"one@example.com": ["aapl", " msft ", "", "AAPL", 7]},
    }))
    store = JsonUserStore(path)

    users = asyncio.run(store.list_all_digest_recipients())
    symbols = asyncio.run(store.list_symbols_for_user("one@example.com"))

    assert users == [Subscriber("u1", "one@example.com", "One")]
    assert symbols == ["AAPL", "MSFT"]


def test_missing_store_is_store_error_for_subscribers(tmp_path):
    with pytest.raises(StoreError):
        asyncio.run(JsonUserStore(tmp_path / "missing.json").list_all_digest_recipients())


def test_watchlist_lookup_never_raises(tmp_path):
    store = JsonUserStore(tmp_path / "missing.json")

    assert asyncio.run(store.list_symbols_for_user("who@example.com")) == []


@pytest.mark.parametrize("watchlist", [None, "AAPL", {"AAPL": 1}, 42])
def test_malformed_watchlist_entry_is_empty(tmp_path, watchlist):
    path = tmp_path / "users.json"
    path.write_text(json.dumps({"users": [], "watchlists": {"a@example.com": watchlist}}))

    assert asyncio.run(JsonUserStore(path).list_symbols_for_user("a@example.com")) == []


def test_non_object_watchlists_section_is_empty(tmp_path):
    path = tmp_path / "users.json"
    path.write_text(json.dumps({"users": [], "watchlists": ["AAPL"]}))

    assert asyncio.run(JsonUserStore(path).list_symbols_for_user("a@example.com")) == []


def test_unknown_user_has_empty_watchlist():
    store = InMemoryUserStore([Subscriber("u1", "a@example.com", "A")], {"a@example.com": ["tsla"]})

    assert asyncio.run(store.list_symbols_for_user("a@example.com")) == ["TSLA"]
    assert asyncio.run(store.list_symbols_for_user("b@example.com")) == []
