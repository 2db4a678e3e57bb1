"""Candle acquisition with caching, staleness and retry policy.

Cache key is (symbol, interval, limit). A series stays fresh for one
interval period (3m -> 3 minutes, 1h -> 1 hour). Stale series are served
while a single background refresh runs; only a caller with nothing
cached waits on the network.
"""

from __future__ import annotations

import logging

from market_app.clients import BinanceRestClient
from market_app.config import Settings
from market_app.errors import InvalidRequest
from market_app.services.retry import DEFAULT_MAX_RETRIES, call_with_retry
from market_app.storage import SnapshotCache
from market_core.models import CandleSeries, interval_seconds, is_supported_interval

logger = logging.getLogger(__name__)

CandleKey = tuple[str, str, int]


class CandleSource:
    """Fetch candle series for a symbol and interval."""

    def __init__(
        self,
        client: BinanceRestClient,
        cache: SnapshotCache[CandleKey, CandleSeries] | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = 1.0,
        retry_max_delay: float = 5.0,
    ):
        self._client = client
        self._cache: SnapshotCache[CandleKey, CandleSeries] = (
            cache if cache is not None else SnapshotCache()
        )
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay

    @classmethod
    def from_settings(cls, client: BinanceRestClient, settings: Settings) -> CandleSource:
        return cls(
            client,
            max_retries=settings.max_retries,
            retry_base_delay=settings.retry_base_delay,
            retry_max_delay=settings.retry_max_delay,
        )

    @property
    def cache(self) -> SnapshotCache[CandleKey, CandleSeries]:
        return self._cache

    @staticmethod
    def freshness_window(interval: str) -> float:
        """Seconds a series of this interval stays fresh."""
        return float(interval_seconds(interval))

    async def fetch(
        self,
        symbol: str,
        interval: str,
        limit: int = 100,
        wait_for_fresh: bool = False,
    ) -> CandleSeries:
        """
        Get the latest candles for a symbol and interval.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            interval: Candle interval (e.g., "3m")
            limit: Number of candles
            wait_for_fresh: Wait for a refetch instead of serving stale data

        Returns:
            CandleSeries, oldest first

        Raises:
            InvalidRequest: Bad symbol/interval/limit or unparseable data
            RateLimited: Provider throttling (not retried)
            UpstreamError: Provider failure (5xx retried)
            NetworkError: Connectivity failure (retried)
        """
        if not symbol or not symbol.strip():
            raise InvalidRequest("Symbol is required")
        if not is_supported_interval(interval):
            raise InvalidRequest(f"Unsupported interval: {interval!r}")
        if limit < 1:
            raise InvalidRequest(f"Limit must be positive, got {limit}")

        return await self._cache.get(
            (symbol, interval, limit),
            lambda: self._fetch_remote(symbol, interval, limit),
            ttl=self.freshness_window(interval),
            wait_for_fresh=wait_for_fresh,
        )

    async def _fetch_remote(self, symbol: str, interval: str, limit: int) -> CandleSeries:
        series = await call_with_retry(
            lambda: self._client.get_klines(symbol, interval, limit),
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
        )
        logger.info(f"Loaded {len(series)} {interval} candles for {symbol}")
        return series

    def invalidate(self, symbol: str, interval: str, limit: int = 100) -> None:
        """Drop a cached series so the next fetch goes to the provider."""
        self._cache.invalidate((symbol, interval, limit))
