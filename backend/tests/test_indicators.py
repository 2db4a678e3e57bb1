"""Tests for technical indicators."""

import pytest

from market_core.indicators import (
    IndicatorEngine,
    classify_trend,
    ema,
    highest,
    lowest,
    rsi,
    slope,
    sma,
)
from market_core.models import Candle, CandleSeries, ChecklistConfig, TrendDirection


def make_series(closes, interval="3m", volume=10.0):
    """Build a series with a small fixed range around each close."""
    step = 180_000
    candles = [
        Candle(
            timestamp=i * step,
            open=c,
            high=c + 0.5,
            low=c - 0.5,
            close=c,
            volume=volume,
        )
        for i, c in enumerate(closes)
    ]
    return CandleSeries(symbol="BTCUSDT", interval=interval, candles=candles)


class TestEMA:
    """Tests for EMA calculation."""

    def test_ema_basic(self):
        """Test basic EMA calculation."""
        values = [float(i) for i in range(1, 11)]  # 1-10
        result = ema(values, 5)

        # First 4 values are not available yet
        assert result[0] is None
        assert result[3] is None

        # 5th value should be SMA of first 5 = (1+2+3+4+5)/5 = 3
        assert result[4] == pytest.approx(3.0)

        # Subsequent values should be EMA
        assert result[5] > result[4]

    def test_ema_insufficient_data(self):
        """Test EMA with insufficient data."""
        result = ema([100.0, 101.0, 102.0], 10)

        assert len(result) == 3
        assert all(v is None for v in result)

    def test_ema_constant_series(self):
        """EMA of a constant series is the constant."""
        result = ema([50.0] * 30, 10)
        assert result[-1] == pytest.approx(50.0)


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_basic(self):
        """Test basic SMA calculation."""
        values = [float(i) for i in range(1, 11)]  # 1-10
        result = sma(values, 3)

        assert result[0] is None
        assert result[1] is None

        # 3rd value should be (1+2+3)/3 = 2
        assert result[2] == pytest.approx(2.0)

        # 4th value should be (2+3+4)/3 = 3
        assert result[3] == pytest.approx(3.0)

    def test_sma_empty(self):
        assert sma([], 5) == []


class TestRSI:
    """Tests for RSI calculation."""

    def test_rsi_first_value_at_period(self):
        """RSI needs ``period`` price changes."""
        values = [float(i) for i in range(1, 21)]
        result = rsi(values, 14)

        assert all(v is None for v in result[:14])
        assert result[14] is not None

    def test_rsi_only_gains(self):
        result = rsi([float(i) for i in range(1, 30)], 14)
        assert result[-1] == pytest.approx(100.0)

    def test_rsi_only_losses(self):
        result = rsi([float(i) for i in range(30, 1, -1)], 14)
        assert result[-1] == pytest.approx(0.0)

    def test_rsi_flat_series(self):
        """No movement at all reads neutral."""
        result = rsi([100.0] * 20, 14)
        assert result[-1] == pytest.approx(50.0)

    def test_rsi_bounds(self):
        """RSI stays within [0, 100] for a choppy series."""
        values = [100.0, 102.0, 99.0, 103.0, 98.0, 104.0, 97.0] * 5
        result = rsi(values, 14)
        assert all(0.0 <= v <= 100.0 for v in result if v is not None)

    def test_rsi_insufficient_data(self):
        result = rsi([100.0] * 14, 14)
        assert result == [None] * 14


class TestHighestLowest:
    """Tests for highest/lowest calculations."""

    def test_highest_basic(self):
        """Test highest value over period."""
        values = [1.0, 3.0, 2.0, 5.0, 4.0, 6.0, 3.0, 8.0, 7.0]
        result = highest(values, 3)

        assert result[0] is None
        assert result[1] is None

        # highest([1,3,2]) = 3
        assert result[2] == 3.0

        # highest([3,2,5]) = 5
        assert result[3] == 5.0

        # highest([2,5,4]) = 5
        assert result[4] == 5.0

    def test_lowest_basic(self):
        """Test lowest value over period."""
        values = [5.0, 3.0, 4.0, 1.0, 6.0, 2.0, 7.0, 3.0, 8.0]
        result = lowest(values, 3)

        # lowest([5,3,4]) = 3
        assert result[2] == 3.0

        # lowest([3,4,1]) = 1
        assert result[3] == 1.0


class TestTrend:
    """Tests for slope and trend classification."""

    def test_slope(self):
        assert slope([100.0, 101.0, 102.0, 110.0], 3) == pytest.approx(0.1)

    def test_slope_missing_values(self):
        assert slope([None, None, 100.0], 2) is None
        assert slope([100.0], 3) is None

    def test_classify_bullish(self):
        fast = [None, 101.0, 102.0, 103.0]
        slow = [None, 100.0, 100.5, 101.0]
        assert classify_trend(fast, slow, 2) == TrendDirection.BULLISH

    def test_classify_bearish(self):
        fast = [None, 99.0, 98.0, 97.0]
        slow = [None, 100.0, 99.5, 99.0]
        assert classify_trend(fast, slow, 2) == TrendDirection.BEARISH

    def test_classify_contradiction_is_neutral(self):
        """Fast above slow but falling is not a trend."""
        fast = [None, 105.0, 104.0, 103.0]
        slow = [None, 100.0, 100.0, 100.0]
        assert classify_trend(fast, slow, 2) == TrendDirection.NEUTRAL

    def test_classify_missing_is_neutral(self):
        assert classify_trend([None, None], [None, None], 1) == TrendDirection.NEUTRAL
        assert classify_trend([], [], 1) == TrendDirection.NEUTRAL


class TestIndicatorEngine:
    """Tests for IndicatorEngine class."""

    def test_aligned_with_series(self):
        series = make_series([100.0 + i for i in range(30)])
        result = IndicatorEngine().compute(series)

        assert len(result) == 30
        assert len(result.rsi) == 30
        assert len(result.volume_sma) == 30

    def test_two_candles_are_unknown(self):
        """Early-window indicators stay unavailable until history accumulates."""
        series = CandleSeries(
            symbol="BTCUSDT",
            interval="3m",
            candles=[
                Candle(timestamp=0, open=100, high=105, low=98, close=104, volume=10),
                Candle(timestamp=180_000, open=104, high=110, low=103, close=109, volume=15),
            ],
        )

        result = IndicatorEngine().compute(series)

        assert result.ema_fast == (None, None)
        assert result.ema_slow == (None, None)
        assert result.rsi == (None, None)
        assert result.trend == TrendDirection.NEUTRAL

    def test_upward_closes_are_bullish_once_lookback_is_met(self):
        engine = IndicatorEngine()
        series = make_series([100.0 + i * 0.5 for i in range(engine.min_history + 5)])

        result = engine.compute(series)

        assert result.ema_fast[-1] is not None
        assert result.ema_slow[-1] is not None
        assert result.trend == TrendDirection.BULLISH

    def test_downward_closes_are_bearish(self):
        engine = IndicatorEngine()
        series = make_series([200.0 - i * 0.5 for i in range(engine.min_history + 5)])

        assert engine.compute(series).trend == TrendDirection.BEARISH

    def test_empty_series(self):
        result = IndicatorEngine().compute(CandleSeries(symbol="BTCUSDT", interval="3m"))

        assert len(result) == 0
        assert result.trend == TrendDirection.NEUTRAL

    def test_min_history_follows_config(self):
        config = ChecklistConfig(
            ema_fast_period=5,
            ema_slow_period=10,
            rsi_period=5,
            volume_period=5,
        )
        assert IndicatorEngine(config).min_history == 11
