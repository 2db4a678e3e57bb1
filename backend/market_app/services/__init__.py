"""Business services."""

from market_app.services.candle_source import CandleSource
from market_app.services.multi_interval import (
    IntervalState,
    IntervalStatus,
    MultiIntervalOrchestrator,
    MultiIntervalView,
)
from market_app.services.orderbook_source import OrderBookSource
from market_app.services.retry import call_with_retry
from market_app.services.timeframe import TimeframeProvider, resolve_timeframe

__all__ = [
    "CandleSource",
    "IntervalState",
    "IntervalStatus",
    "MultiIntervalOrchestrator",
    "MultiIntervalView",
    "OrderBookSource",
    "call_with_retry",
    "TimeframeProvider",
    "resolve_timeframe",
]
