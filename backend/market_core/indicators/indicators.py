"""Technical indicators for checklist evaluation.

Every series function takes a float sequence and returns a list of the
same length. Positions before the indicator's lookback is satisfied hold
None ("not yet available"), so short input never raises.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from market_core.models import CandleSeries, ChecklistConfig, TrendDirection


def _to_optional(arr: np.ndarray) -> list[float | None]:
    """Convert a NaN-padded array to a list with None for missing values."""
    return [None if np.isnan(v) else float(v) for v in arr]


# =============================================================================
# Series functions
# =============================================================================

def ema(values: Sequence[float], period: int) -> list[float | None]:
    """
    Calculate Exponential Moving Average.

    The first value is seeded with the SMA of the first ``period`` values.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input, None for initial values)
    """
    n = len(values)
    if n < period:
        return [None] * n

    arr = np.asarray(values, dtype=np.float64)
    multiplier = 2.0 / (period + 1)

    result = np.full(n, np.nan)
    result[period - 1] = np.mean(arr[:period])

    for i in range(period, n):
        result[i] = arr[i] * multiplier + result[i - 1] * (1 - multiplier)

    return _to_optional(result)


def sma(values: Sequence[float], period: int) -> list[float | None]:
    """Calculate Simple Moving Average."""
    n = len(values)
    if n < period:
        return [None] * n

    arr = np.asarray(values, dtype=np.float64)
    result = np.full(n, np.nan)

    for i in range(period - 1, n):
        result[i] = np.mean(arr[i - period + 1 : i + 1])

    return _to_optional(result)


def highest(values: Sequence[float], period: int) -> list[float | None]:
    """Calculate highest value over lookback period."""
    n = len(values)
    if n < period:
        return [None] * n

    arr = np.asarray(values, dtype=np.float64)
    result = np.full(n, np.nan)

    for i in range(period - 1, n):
        result[i] = np.max(arr[i - period + 1 : i + 1])

    return _to_optional(result)


def lowest(values: Sequence[float], period: int) -> list[float | None]:
    """Calculate lowest value over lookback period."""
    n = len(values)
    if n < period:
        return [None] * n

    arr = np.asarray(values, dtype=np.float64)
    result = np.full(n, np.nan)

    for i in range(period - 1, n):
        result[i] = np.min(arr[i - period + 1 : i + 1])

    return _to_optional(result)


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else 50.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(values: Sequence[float], period: int = 14) -> list[float | None]:
    """
    Calculate Relative Strength Index with Wilder's smoothing.

    The first value is available at index ``period`` (it needs ``period``
    price changes). A flat series reads 50, a series without losses 100.

    Args:
        values: Sequence of close prices
        period: RSI period

    Returns:
        List of RSI values in [0, 100]
    """
    n = len(values)
    if n <= period:
        return [None] * n

    arr = np.asarray(values, dtype=np.float64)
    deltas = np.diff(arr)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    result = np.full(n, np.nan)
    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, n):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        result[i] = _rsi_value(avg_gain, avg_loss)

    return _to_optional(result)


def slope(values: Sequence[float | None], period: int) -> float | None:
    """Relative change of the latest value over ``period`` bars.

    Returns None when either endpoint is unavailable.
    """
    if len(values) <= period:
        return None
    current = values[-1]
    previous = values[-1 - period]
    if current is None or previous is None or previous == 0:
        return None
    return (current - previous) / previous


def classify_trend(
    ema_fast: Sequence[float | None],
    ema_slow: Sequence[float | None],
    slope_period: int,
) -> TrendDirection:
    """
    Classify the trend from the fast/slow EMA relation and fast EMA slope.

    Bullish: fast EMA above slow EMA and rising over ``slope_period`` bars.
    Bearish: fast EMA below slow EMA and falling. Anything else, including
    missing values, is neutral.
    """
    if not ema_fast or not ema_slow:
        return TrendDirection.NEUTRAL

    fast = ema_fast[-1]
    slow = ema_slow[-1]
    fast_slope = slope(ema_fast, slope_period)
    if fast is None or slow is None or fast_slope is None:
        return TrendDirection.NEUTRAL

    if fast > slow and fast_slope > 0:
        return TrendDirection.BULLISH
    if fast < slow and fast_slope < 0:
        return TrendDirection.BEARISH
    return TrendDirection.NEUTRAL


# =============================================================================
# IndicatorEngine
# =============================================================================

@dataclass(frozen=True)
class IndicatorSet:
    """Per-candle indicator values plus the series trend classification.

    Each tuple is aligned with the candle series; None marks candles
    before the indicator's lookback is satisfied.
    """

    ema_fast: tuple[float | None, ...]
    ema_slow: tuple[float | None, ...]
    rsi: tuple[float | None, ...]
    volume_sma: tuple[float | None, ...]
    trend: TrendDirection

    def __len__(self) -> int:
        return len(self.ema_fast)


class IndicatorEngine:
    """Calculator for all indicators needed by the checklist."""

    def __init__(self, config: ChecklistConfig | None = None):
        self.config = config or ChecklistConfig()

    @property
    def min_history(self) -> int:
        """Candles needed before every indicator has a latest value."""
        cfg = self.config
        return max(
            cfg.ema_slow_period + 1,
            cfg.ema_fast_period + cfg.slope_period,
            cfg.rsi_period + 1,
            cfg.volume_period,
        )

    def compute(self, series: CandleSeries) -> IndicatorSet:
        """
        Calculate all indicators for a candle series.

        Args:
            series: Candle series (may be empty or shorter than any lookback)

        Returns:
            IndicatorSet aligned with the series
        """
        cfg = self.config
        closes = series.closes

        ema_fast = ema(closes, cfg.ema_fast_period)
        ema_slow = ema(closes, cfg.ema_slow_period)

        return IndicatorSet(
            ema_fast=tuple(ema_fast),
            ema_slow=tuple(ema_slow),
            rsi=tuple(rsi(closes, cfg.rsi_period)),
            volume_sma=tuple(sma(series.volumes, cfg.volume_period)),
            trend=classify_trend(ema_fast, ema_slow, cfg.slope_period),
        )
