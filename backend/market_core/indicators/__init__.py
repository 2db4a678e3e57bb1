"""Technical indicators and candle patterns (pure math, no I/O)."""

from market_core.indicators.indicators import (
    ema,
    sma,
    rsi,
    highest,
    lowest,
    slope,
    classify_trend,
    IndicatorEngine,
    IndicatorSet,
)
from market_core.indicators.patterns import (
    SwingPoints,
    detect_swing_points,
    engulfing_pattern,
    pin_bar_pattern,
)

__all__ = [
    "ema",
    "sma",
    "rsi",
    "highest",
    "lowest",
    "slope",
    "classify_trend",
    "IndicatorEngine",
    "IndicatorSet",
    "SwingPoints",
    "detect_swing_points",
    "engulfing_pattern",
    "pin_bar_pattern",
]
