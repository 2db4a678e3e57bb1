"""Candle structure and reversal pattern detection."""

from dataclasses import dataclass
from typing import Sequence

from market_core.models import Candle, TrendDirection

# Pin bar: dominant wick longer than twice the body and 60% of the range
PIN_WICK_BODY_RATIO = 2.0
PIN_WICK_RANGE_RATIO = 0.6


@dataclass(frozen=True)
class SwingPoints:
    """Indices of swing highs and swing lows, in ascending order."""

    highs: tuple[int, ...]
    lows: tuple[int, ...]


def detect_swing_points(candles: Sequence[Candle], lookback: int = 5) -> SwingPoints:
    """
    Find swing highs and lows.

    A candle is a swing high when its high is strictly greater than the
    highs of the ``lookback`` candles on each side (swing lows mirror this).
    The last ``lookback`` candles can never qualify because their right
    side is not complete yet.

    Args:
        candles: Candle sequence
        lookback: Candles required on each side

    Returns:
        SwingPoints with candle indices
    """
    swing_highs: list[int] = []
    swing_lows: list[int] = []

    for i in range(lookback, len(candles) - lookback):
        current = candles[i]
        window = [candles[j] for j in range(i - lookback, i + lookback + 1) if j != i]

        if all(c.high < current.high for c in window):
            swing_highs.append(i)
        if all(c.low > current.low for c in window):
            swing_lows.append(i)

    return SwingPoints(highs=tuple(swing_highs), lows=tuple(swing_lows))


def engulfing_pattern(prev: Candle, current: Candle) -> TrendDirection | None:
    """Classify a two-candle engulfing pattern, or None if there is none."""
    prev_bullish = prev.close > prev.open
    current_bullish = current.close > current.open

    if (
        not prev_bullish
        and current_bullish
        and current.open <= prev.close
        and current.close >= prev.open
    ):
        return TrendDirection.BULLISH

    if (
        prev_bullish
        and not current_bullish
        and current.open >= prev.close
        and current.close <= prev.open
    ):
        return TrendDirection.BEARISH

    return None


def pin_bar_pattern(candle: Candle) -> TrendDirection | None:
    """Classify a hammer (bullish) or shooting star (bearish) candle."""
    total_range = candle.range_size
    if total_range == 0:
        return None

    body = candle.body_size
    upper = candle.upper_wick
    lower = candle.lower_wick

    if (
        lower > body * PIN_WICK_BODY_RATIO
        and upper < body
        and lower > total_range * PIN_WICK_RANGE_RATIO
    ):
        return TrendDirection.BULLISH

    if (
        upper > body * PIN_WICK_BODY_RATIO
        and lower < body
        and upper > total_range * PIN_WICK_RANGE_RATIO
    ):
        return TrendDirection.BEARISH

    return None
