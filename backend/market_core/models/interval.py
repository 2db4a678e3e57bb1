"""Candle interval definitions.

An interval's period doubles as its cache freshness window and its
polling period: a 3m series is considered fresh for 3 minutes.
"""

# Bucket period in seconds for every interval the provider accepts here
INTERVAL_SECONDS: dict[str, int] = {
    "1m": 60,
    "3m": 3 * 60,
    "5m": 5 * 60,
    "15m": 15 * 60,
    "30m": 30 * 60,
    "1h": 60 * 60,
    "2h": 2 * 60 * 60,
    "4h": 4 * 60 * 60,
    "1d": 24 * 60 * 60,
}

SUPPORTED_INTERVALS: tuple[str, ...] = tuple(INTERVAL_SECONDS)

# Used whenever the timeframe provider is unavailable
DEFAULT_TIMEFRAME = "3m"

# Intervals tracked together by the multi-interval view
DEFAULT_INTERVALS: tuple[str, ...] = ("3m", "15m", "1h")


def is_supported_interval(interval: str) -> bool:
    """Check if an interval string is supported."""
    return interval in INTERVAL_SECONDS


def interval_seconds(interval: str) -> int:
    """Return the bucket period of an interval in seconds.

    Raises:
        ValueError: If the interval is not supported
    """
    try:
        return INTERVAL_SECONDS[interval]
    except KeyError:
        raise ValueError(f"Unsupported interval: {interval!r}") from None
