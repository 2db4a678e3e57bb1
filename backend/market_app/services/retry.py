"""Retry policy for market data fetches.

Transient failures (network errors, 5xx) are retried with exponential
back-off; rate limiting and invalid requests surface immediately.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from market_app.errors import is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 2


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = 1.0,
    max_delay: float = 5.0,
) -> T:
    """
    Call ``fn`` and retry transient failures.

    Args:
        fn: Coroutine factory to call
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry (doubles per retry)
        max_delay: Upper bound for a single delay

    Returns:
        Result of the first successful attempt

    Raises:
        The last exception once retries are exhausted, or any
        non-transient exception straight away
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=base_delay, max=max_delay),
        retry=retry_if_exception(is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            return await fn()
    raise AssertionError("unreachable: retry loop exited without a result")
