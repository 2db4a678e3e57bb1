"""Timeframe resolution with a local fallback.

The authoritative timeframe comes from an external backend. When that
collaborator is missing, fails, or answers with an interval we cannot
fetch, the local default ("3m") is used.
"""

import logging
from typing import Awaitable, Callable

from market_core.models import DEFAULT_TIMEFRAME, is_supported_interval

logger = logging.getLogger(__name__)

TimeframeProvider = Callable[[], Awaitable[str]]


async def resolve_timeframe(
    provider: TimeframeProvider | None = None,
    default: str = DEFAULT_TIMEFRAME,
) -> str:
    """
    Ask the backend for the timeframe, falling back to ``default``.

    Args:
        provider: Coroutine factory returning the backend timeframe
        default: Timeframe used when the provider cannot answer

    Returns:
        A supported interval string
    """
    if provider is None:
        return default

    try:
        timeframe = await provider()
    except Exception as e:
        logger.warning(f"Failed to fetch timeframe from backend, using local constant: {e!r}")
        return default

    if not is_supported_interval(timeframe):
        logger.warning(f"Backend timeframe {timeframe!r} is not supported, using {default}")
        return default

    return timeframe
