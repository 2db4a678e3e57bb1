"""Binance REST API client for candles and order book snapshots."""

import asyncio
import logging
from typing import Any

import httpx

from market_app.errors import InvalidRequest, NetworkError, RateLimited, UpstreamError
from market_core.models import Candle, CandleSeries, OrderBook, OrderBookLevel

logger = logging.getLogger(__name__)

MAX_KLINE_LIMIT = 1500

# Depth limits accepted by /fapi/v1/depth
DEPTH_LIMITS = (5, 10, 20, 50, 100, 500, 1000)


class RateLimiter:
    """Simple rate limiter for API calls."""

    def __init__(self, calls_per_minute: int = 1200):
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect rate limit."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            wait_time = self.last_call + self.interval - loop.time()
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self.last_call = loop.time()


def _error_message(response: httpx.Response) -> str:
    """Extract Binance's ``msg`` field, falling back to the raw body."""
    try:
        return str(response.json().get("msg", response.text))
    except (ValueError, AttributeError):
        return response.text


def raise_for_status(response: httpx.Response) -> None:
    """Map a non-2xx provider response to the market data error taxonomy."""
    status = response.status_code
    if 200 <= status < 300:
        return
    if status == 429:
        raise RateLimited("Rate limit exceeded")
    if status == 400:
        raise InvalidRequest(f"Invalid symbol or interval: {_error_message(response)}")
    raise UpstreamError(status, f"Upstream request failed: {status}")


def parse_klines(symbol: str, interval: str, data: Any) -> CandleSeries:
    """
    Parse raw kline arrays into a CandleSeries.

    Each record is ``[openTime, open, high, low, close, volume, ...]`` with
    numbers or numeric strings. Any malformed record fails the whole batch.

    Raises:
        InvalidRequest: If the payload cannot be parsed or validated
    """
    if not isinstance(data, list):
        raise InvalidRequest(f"Unexpected kline payload for {symbol} {interval}")

    try:
        candles = [
            Candle(
                timestamp=int(item[0]),
                open=float(item[1]),
                high=float(item[2]),
                low=float(item[3]),
                close=float(item[4]),
                volume=float(item[5]),
            )
            for item in data
        ]
        return CandleSeries(symbol=symbol, interval=interval, candles=candles)
    except (TypeError, ValueError, IndexError) as e:
        # pydantic's ValidationError is a ValueError
        raise InvalidRequest(f"Malformed kline data for {symbol} {interval}: {e}") from e


def parse_depth(symbol: str, data: Any) -> OrderBook:
    """
    Parse a raw depth snapshot into an OrderBook.

    Raises:
        InvalidRequest: If the payload cannot be parsed or validated
    """
    try:
        return OrderBook(
            symbol=symbol,
            bids=[OrderBookLevel(price=float(p), quantity=float(q)) for p, q in data["bids"]],
            asks=[OrderBookLevel(price=float(p), quantity=float(q)) for p, q in data["asks"]],
            last_update_id=int(data.get("lastUpdateId", 0)),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InvalidRequest(f"Malformed order book for {symbol}: {e}") from e


class BinanceRestClient:
    """Binance Futures REST API client."""

    BASE_URL = "https://fapi.binance.com"

    def __init__(
        self,
        api_key: str = "",
        base_url: str | None = None,
        timeout: float = 30.0,
        calls_per_minute: int = 1200,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self.rate_limiter = RateLimiter(calls_per_minute)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.api_key:
                headers["X-MBX-APIKEY"] = self.api_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Make an API request with rate limiting and error mapping."""
        await self.rate_limiter.acquire()
        client = await self._get_client()
        try:
            response = await client.request(method, endpoint, params=params)
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {endpoint} failed: {e!r}") from e

        raise_for_status(response)

        try:
            return response.json()
        except ValueError as e:
            raise InvalidRequest(f"Malformed response body from {endpoint}") from e

    async def get_klines(
        self,
        symbol: str,
        interval: str,
        limit: int = 100,
    ) -> CandleSeries:
        """
        Fetch the most recent K-lines from Binance.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            interval: K-line interval (e.g., "3m", "1h")
            limit: Maximum number of K-lines (max 1500)

        Returns:
            CandleSeries, oldest candle first
        """
        params: dict[str, Any] = {
            "symbol": symbol,
            "interval": interval,
            "limit": min(limit, MAX_KLINE_LIMIT),
        }
        data = await self._request("GET", "/fapi/v1/klines", params)
        series = parse_klines(symbol, interval, data)
        logger.debug(f"Fetched {len(series)} {interval} klines for {symbol}")
        return series

    async def get_depth(self, symbol: str, limit: int = 50) -> OrderBook:
        """
        Fetch an order book snapshot.

        Args:
            symbol: Trading pair
            limit: Levels per side (one of DEPTH_LIMITS)

        Returns:
            OrderBook with bids descending and asks ascending
        """
        data = await self._request("GET", "/fapi/v1/depth", {"symbol": symbol, "limit": limit})
        return parse_depth(symbol, data)
