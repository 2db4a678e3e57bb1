"""Exchange clients."""

from market_app.clients.binance_rest import (
    DEPTH_LIMITS,
    BinanceRestClient,
    RateLimiter,
    parse_depth,
    parse_klines,
)

__all__ = [
    "DEPTH_LIMITS",
    "BinanceRestClient",
    "RateLimiter",
    "parse_depth",
    "parse_klines",
]
