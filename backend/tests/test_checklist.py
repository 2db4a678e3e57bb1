"""Tests for the checklist signal engine."""

import pytest

from market_core.checklist import ChecklistSignalEngine, EmptySeriesError
from market_core.models import (
    Candle,
    CandleSeries,
    ChecklistConfig,
    SignalStatus,
    TrendDirection,
)

STEP = 180_000  # 3m in ms


def rising_series(n=60):
    """Steady uptrend: +0.1 per bar, constant volume."""
    candles = []
    for i in range(n):
        close = 100 + 0.1 * i
        candles.append(
            Candle(
                timestamp=i * STEP,
                open=close - 0.05,
                high=close + 0.05,
                low=close - 0.1,
                close=close,
                volume=10,
            )
        )
    return CandleSeries(symbol="BTCUSDT", interval="3m", candles=candles)


def falling_series(n=60):
    """Steady downtrend: -0.1 per bar, constant volume."""
    candles = []
    for i in range(n):
        close = 200 - 0.1 * i
        candles.append(
            Candle(
                timestamp=i * STEP,
                open=close + 0.05,
                high=close + 0.1,
                low=close - 0.05,
                close=close,
                volume=10,
            )
        )
    return CandleSeries(symbol="ETHUSDT", interval="3m", candles=candles)


def crash_series(n=60):
    """Uptrend whose last bar collapses: fast EMA drops below slow on one bar only."""
    candles = list(rising_series(n - 1).candles)
    prev_close = candles[-1].close
    candles.append(
        Candle(
            timestamp=(n - 1) * STEP,
            open=prev_close,
            high=prev_close + 0.1,
            low=69.9,
            close=70,
            volume=10,
        )
    )
    return CandleSeries(symbol="BTCUSDT", interval="3m", candles=candles)


class TestChecklistBasics:
    """Tests for step layout and edge cases."""

    def test_six_ordered_steps(self):
        result = ChecklistSignalEngine().evaluate(rising_series())

        assert [s.step for s in result.signals] == [1, 2, 3, 4, 5, 6]
        assert result.signals[0].label == "EMA20/50 Alignment"
        assert result.signals[-1].label == "Risk/Reward Viability"

    def test_labels_follow_config(self):
        engine = ChecklistSignalEngine(ChecklistConfig(ema_fast_period=9, ema_slow_period=21))
        assert engine.labels[0] == "EMA9/21 Alignment"

    def test_empty_series_raises(self):
        with pytest.raises(EmptySeriesError):
            ChecklistSignalEngine().evaluate(CandleSeries(symbol="BTCUSDT", interval="3m"))

    def test_two_candles_are_unknown(self):
        """Short history yields unknown steps, a neutral trend and no setup."""
        series = CandleSeries(
            symbol="BTCUSDT",
            interval="3m",
            candles=[
                Candle(timestamp=0, open=100, high=105, low=98, close=104, volume=10),
                Candle(timestamp=180_000, open=104, high=110, low=103, close=109, volume=15),
            ],
        )

        result = ChecklistSignalEngine().evaluate(series)

        assert all(s.status == SignalStatus.UNKNOWN for s in result.signals)
        assert result.trend_direction == TrendDirection.NEUTRAL
        assert not result.has_trade_setup
        assert result.entry_price is None
        assert result.stop_loss is None
        assert result.target is None

    def test_failed_conditions_are_not_met_rather_than_unknown(self):
        """With enough history, failed conditions are not-met, not unknown."""
        result = ChecklistSignalEngine().evaluate(crash_series())

        statuses = [s.status for s in result.signals]
        assert SignalStatus.UNKNOWN not in statuses
        assert statuses[0] == SignalStatus.NOT_MET  # EMAs crossed on the last bar only
        assert statuses[1] == SignalStatus.MET  # falling EMA, RSI collapsed
        assert statuses[2] == SignalStatus.NOT_MET
        assert statuses[3] == SignalStatus.NOT_MET
        assert statuses[5] == SignalStatus.NOT_MET

    def test_unconfirmed_trend_is_neutral(self):
        """Momentum alone does not make a trend."""
        result = ChecklistSignalEngine().evaluate(crash_series())

        assert result.trend_direction == TrendDirection.NEUTRAL
        assert not result.has_trade_setup

    def test_deterministic(self):
        engine = ChecklistSignalEngine()
        series = rising_series()

        first = engine.evaluate(series)
        second = engine.evaluate(series)

        assert first == second
        assert ChecklistSignalEngine().evaluate(series) == first


class TestTradeSetup:
    """Tests for trend direction and entry/stop/target."""

    def test_bullish_setup(self):
        result = ChecklistSignalEngine().evaluate(rising_series())

        assert result.trend_direction == TrendDirection.BULLISH
        assert result.met_count == 4
        assert [s.is_met for s in result.signals] == [True, True, False, False, True, True]

        assert result.entry_price == pytest.approx(105.9)
        assert result.stop_loss == pytest.approx(103.9 * 0.995)
        risk = 105.9 - 103.9 * 0.995
        assert result.target == pytest.approx(105.9 + 2 * risk)
        assert result.target > result.entry_price > result.stop_loss

    def test_bearish_setup(self):
        result = ChecklistSignalEngine().evaluate(falling_series())

        assert result.trend_direction == TrendDirection.BEARISH
        assert result.has_trade_setup
        assert result.entry_price == pytest.approx(194.1)
        assert result.stop_loss == pytest.approx(196.1 * 1.005)
        assert result.target < result.entry_price < result.stop_loss

    def test_reward_ratio(self):
        result = ChecklistSignalEngine().evaluate(rising_series())
        assert result.reward_amount == pytest.approx(2 * result.risk_amount)

    def test_stop_uses_recent_range_only(self):
        engine = ChecklistSignalEngine(ChecklistConfig(range_period=5))
        candles = rising_series().candles

        entry, stop, target = engine._trade_levels(candles, TrendDirection.BULLISH)

        assert entry == pytest.approx(105.9)
        assert stop == pytest.approx(105.4 * 0.995)
        assert target == pytest.approx(entry + 2 * (entry - stop))

    def test_range_shorter_than_period(self):
        candles = falling_series().candles[:3]

        entry, stop, _ = ChecklistSignalEngine()._trade_levels(candles, TrendDirection.BEARISH)

        assert entry == pytest.approx(199.8)
        assert stop == pytest.approx(200.1 * 1.005)

    def test_threshold_not_reached(self):
        """Trend still reported, but no setup below the minimum met count."""
        config = ChecklistConfig(min_met_steps=5)
        result = ChecklistSignalEngine(config).evaluate(rising_series())

        assert result.trend_direction == TrendDirection.BULLISH
        assert result.met_count == 4
        assert not result.has_trade_setup
        assert result.target is None

    def test_stop_too_far(self):
        config = ChecklistConfig(max_risk_percent=1.0)
        result = ChecklistSignalEngine(config).evaluate(rising_series())

        assert result.signals[5].status == SignalStatus.NOT_MET
        assert "Stop too far" in result.signals[5].details
        assert not result.has_trade_setup

    def test_neutral_never_has_setup(self):
        config = ChecklistConfig(min_met_steps=1)
        result = ChecklistSignalEngine(config).evaluate(crash_series())

        assert result.trend_direction == TrendDirection.NEUTRAL
        assert result.met_count >= 1
        assert not result.has_trade_setup
