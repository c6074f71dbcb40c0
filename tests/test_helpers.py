"""
Tests for date and concurrency helpers.
"""

import asyncio
from datetime import date, datetime, timezone

import pytest

from utils.helpers import async_retry, format_date_today, gather_bounded, get_date_range


def test_date_range_spans_lookback_window():
    assert get_date_range(5, today=date(2026, 10, 18)) == ("2026-10-13", "2026-10-18")


def test_format_date_today_long_form():
    assert format_date_today(datetime(2026, 10, 18, tzinfo=timezone.utc)) == "Sunday, October 18, 2026"


def test_gather_bounded_respects_limit_and_order():
    in_flight = 0
    peak = 0

    async def worker(n):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return n * 2

    results = asyncio.run(gather_bounded(range(10), worker, max_concurrent=3))

    assert results == [n * 2 for n in range(10)]
    assert peak <= 3


def test_async_retry_gives_up_after_max_attempts():
    attempts = []

    @async_retry(max_attempts=3, delay_seconds=0, exceptions=(ValueError,))
    async def flaky():
        attempts.append(1)
        raise ValueError("nope")

    with pytest.raises(ValueError):
        asyncio.run(flaky())
    assert len(attempts) == 3
