"""
Helper functions for the Market Digest pipeline.
Common utilities for dates, retries, and bounded concurrency.
"""

import asyncio
import functools
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple, TypeVar
from datetime import date, datetime, timedelta, timezone

T = TypeVar("T")


# =============================================================================
# Date Functions
# =============================================================================

def get_date_range(days: int, today: Optional[date] = None) -> Tuple[str, str]:
    """
    Get a (from, to) pair of ISO dates covering the last `days` days.

    Args:
        days: Window length in days
        today: End of the window (defaults to the current UTC date)

    Returns:
        Tuple of YYYY-MM-DD strings
    """
    end = today or datetime.now(timezone.utc).date()
    start = end - timedelta(days=days)
    return start.isoformat(), end.isoformat()


def format_date_today(now: Optional[datetime] = None) -> str:
    """Format a date the way it appears in digest subjects: 'Sunday, October 18, 2026'."""
    now = now or datetime.now(timezone.utc)
    return f"{now.strftime('%A')}, {now.strftime('%B')} {now.day}, {now.year}"


# =============================================================================
# Async Utilities
# =============================================================================

def async_retry(
    max_attempts: int = 3,
    delay_seconds: float = 1.0,
    exponential_backoff: bool = True,
    exceptions: tuple = (Exception,),
):
    """
    Decorator for retrying async functions.

    Args:
        max_attempts: Maximum retry attempts
        delay_seconds: Initial delay between retries
        exponential_backoff: Use exponential backoff
        exceptions: Tuple of exceptions to catch

    Returns:
        Decorated function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e

                    if attempt < max_attempts - 1:
                        delay = delay_seconds * (2 ** attempt if exponential_backoff else 1)
                        await asyncio.sleep(delay)

            raise last_exception

        return wrapper
    return decorator


async def gather_bounded(
    items: Iterable[Any],
    worker: Callable[[Any], Awaitable[T]],
    max_concurrent: int = 5,
) -> List[T]:
    """
    Run `worker` over every item with at most `max_concurrent` in flight.

    Results come back in input order. Exceptions raised by a worker propagate;
    callers that need per-item isolation handle failures inside the worker.
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrent))

    async def run_one(item: Any) -> T:
        async with semaphore:
            return await worker(item)

    return list(await asyncio.gather(*[run_one(item) for item in items]))
