"""Order book snapshot acquisition.

Same error taxonomy, retry policy and single-flight cache as candles;
a snapshot stays fresh for ``refresh_seconds``.
"""

from __future__ import annotations

import logging

from market_app.clients import DEPTH_LIMITS, BinanceRestClient
from market_app.config import Settings
from market_app.errors import InvalidRequest
from market_app.services.retry import DEFAULT_MAX_RETRIES, call_with_retry
from market_app.storage import SnapshotCache
from market_core.models import OrderBook

logger = logging.getLogger(__name__)


class OrderBookSource:
    """Fetch order book snapshots for a symbol."""

    def __init__(
        self,
        client: BinanceRestClient,
        refresh_seconds: float = 2.0,
        cache: SnapshotCache[tuple[str, int], OrderBook] | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = 1.0,
        retry_max_delay: float = 5.0,
    ):
        self._client = client
        self.refresh_seconds = refresh_seconds
        self._cache: SnapshotCache[tuple[str, int], OrderBook] = (
            cache if cache is not None else SnapshotCache()
        )
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay

    @classmethod
    def from_settings(cls, client: BinanceRestClient, settings: Settings) -> OrderBookSource:
        return cls(
            client,
            refresh_seconds=settings.depth_refresh_seconds,
            max_retries=settings.max_retries,
            retry_base_delay=settings.retry_base_delay,
            retry_max_delay=settings.retry_max_delay,
        )

    @property
    def cache(self) -> SnapshotCache[tuple[str, int], OrderBook]:
        return self._cache

    async def fetch(self, symbol: str, limit: int = 50) -> OrderBook:
        """
        Get an order book snapshot.

        Args:
            symbol: Trading pair
            limit: Levels per side, one of DEPTH_LIMITS

        Returns:
            OrderBook

        Raises:
            InvalidRequest, RateLimited, UpstreamError, NetworkError
        """
        if not symbol or not symbol.strip():
            raise InvalidRequest("Symbol is required")
        if limit not in DEPTH_LIMITS:
            raise InvalidRequest(f"Depth limit must be one of {DEPTH_LIMITS}, got {limit}")

        return await self._cache.get(
            (symbol, limit),
            lambda: self._fetch_remote(symbol, limit),
            ttl=self.refresh_seconds,
        )

    async def _fetch_remote(self, symbol: str, limit: int) -> OrderBook:
        book = await call_with_retry(
            lambda: self._client.get_depth(symbol, limit),
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
        )
        logger.debug(f"Loaded depth for {symbol}: {len(book.bids)} bids, {len(book.asks)} asks")
        return book
