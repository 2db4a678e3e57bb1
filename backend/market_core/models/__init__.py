"""Data models (pure, no I/O)."""

from market_core.models.candle import Candle, CandleSeries
from market_core.models.config import ChecklistConfig, DepthConfig, TurnConfig
from market_core.models.interval import (
    DEFAULT_INTERVALS,
    DEFAULT_TIMEFRAME,
    INTERVAL_SECONDS,
    SUPPORTED_INTERVALS,
    interval_seconds,
    is_supported_interval,
)
from market_core.models.orderbook import (
    CumulativeLevel,
    DepthAnalysis,
    DepthMetrics,
    LiquidityWall,
    OrderBook,
    OrderBookLevel,
)
from market_core.models.signal import (
    ChecklistResult,
    ChecklistSignal,
    SignalStatus,
    TrendDirection,
)
from market_core.models.turn import (
    FlipDirection,
    FlipResult,
    MarketRegime,
    MarketTurn,
    TurnResult,
    TurnType,
)

__all__ = [
    "Candle",
    "CandleSeries",
    "ChecklistConfig",
    "DepthConfig",
    "TurnConfig",
    "DEFAULT_INTERVALS",
    "DEFAULT_TIMEFRAME",
    "INTERVAL_SECONDS",
    "SUPPORTED_INTERVALS",
    "interval_seconds",
    "is_supported_interval",
    "CumulativeLevel",
    "DepthAnalysis",
    "DepthMetrics",
    "LiquidityWall",
    "OrderBook",
    "OrderBookLevel",
    "ChecklistResult",
    "ChecklistSignal",
    "SignalStatus",
    "TrendDirection",
    "FlipDirection",
    "FlipResult",
    "MarketRegime",
    "MarketTurn",
    "TurnResult",
    "TurnType",
]
