"""
Date utility functions for market data.
Timezone-aware UTC helpers shared by the gateway, aggregator and rate limiter.
"""

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Replaces deprecated datetime.utcnow() which is scheduled for removal in Python 3.14.
    See: https://docs.python.org/3/library/datetime.html#datetime.datetime.utcnow
    """
    return datetime.now(UTC)


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(utcnow().timestamp() * 1000)


def quarter_of(moment: datetime) -> int:
    """Calendar quarter (1-4) of a datetime."""
    return (moment.month - 1) // 3 + 1


def lookback_window(days: int, reference: datetime | None = None) -> tuple[datetime, datetime]:
    """
    (start, end) covering the last `days` calendar days up to reference.

    Args:
        days: Lookback length in calendar days
        reference: End of the window (defaults to now, UTC)
    """
    end = reference or utcnow()
    return end - timedelta(days=days), end
