"""Tests for swing points and reversal candle patterns."""

from market_core.indicators import (
    detect_swing_points,
    engulfing_pattern,
    pin_bar_pattern,
)
from market_core.models import Candle, TrendDirection


def bar(i, high, low):
    """Doji-style candle spanning [low, high]."""
    mid = (high + low) / 2
    return Candle(timestamp=i * 60_000, open=mid, high=high, low=low, close=mid)


def ohlc(open, high, low, close):
    return Candle(timestamp=0, open=open, high=high, low=low, close=close)


class TestSwingPoints:
    """Tests for swing high/low detection."""

    def test_swing_high(self):
        highs = [11, 12, 13, 20, 13, 12, 11]
        candles = [bar(i, h, 10) for i, h in enumerate(highs)]

        swings = detect_swing_points(candles, lookback=2)

        assert swings.highs == (3,)
        assert swings.lows == ()  # Equal lows are not strict extremes

    def test_swing_low(self):
        lows = [10, 9, 8, 2, 8, 9, 10]
        candles = [bar(i, 20, low) for i, low in enumerate(lows)]

        swings = detect_swing_points(candles, lookback=2)

        assert swings.lows == (3,)
        assert swings.highs == ()

    def test_unconfirmed_tail_is_ignored(self):
        """The last ``lookback`` candles cannot be swing points yet."""
        highs = [11, 12, 13, 14, 20]
        candles = [bar(i, h, 10) for i, h in enumerate(highs)]

        assert detect_swing_points(candles, lookback=2).highs == ()

    def test_short_input(self):
        swings = detect_swing_points([bar(0, 11, 10)], lookback=5)
        assert swings.highs == ()
        assert swings.lows == ()


class TestEngulfing:
    """Tests for engulfing pattern detection."""

    def test_bullish_engulfing(self):
        prev = ohlc(105, 106, 99, 100)
        current = ohlc(99.5, 107, 99, 106)
        assert engulfing_pattern(prev, current) == TrendDirection.BULLISH

    def test_bearish_engulfing(self):
        prev = ohlc(100, 106, 99, 105)
        current = ohlc(105.5, 106, 98, 99)
        assert engulfing_pattern(prev, current) == TrendDirection.BEARISH

    def test_same_color_is_not_engulfing(self):
        prev = ohlc(100, 106, 99, 105)
        current = ohlc(104, 110, 103, 109)
        assert engulfing_pattern(prev, current) is None

    def test_partial_cover_is_not_engulfing(self):
        prev = ohlc(105, 106, 99, 100)
        current = ohlc(101, 104, 100.5, 103)
        assert engulfing_pattern(prev, current) is None


class TestPinBar:
    """Tests for hammer / shooting star detection."""

    def test_hammer(self):
        assert pin_bar_pattern(ohlc(109, 110.2, 100, 110)) == TrendDirection.BULLISH

    def test_shooting_star(self):
        assert pin_bar_pattern(ohlc(101, 110, 99.8, 100)) == TrendDirection.BEARISH

    def test_regular_candle(self):
        assert pin_bar_pattern(ohlc(100, 106, 99, 105)) is None

    def test_zero_range(self):
        assert pin_bar_pattern(ohlc(100, 100, 100, 100)) is None
