"""Checklist signal engine.

This module is pure business logic with no I/O dependencies. It turns a
candle series into an ordered checklist of trend/entry conditions and,
when enough of them hold, a trade setup (entry, stop loss, target).

Checklist:
1. EMA alignment   - fast EMA above/below slow EMA on the last two bars (trend)
2. Momentum        - fast EMA slope and RSI agree on direction (trend)
3. Pullback        - close back inside the value zone around the fast EMA
4. Reversal candle - engulfing or pin bar in the trend direction
5. Volume          - latest volume at or above its moving average
6. Risk/reward     - stop distance from the recent range is acceptable

Trade setup:
- Entry is the latest close
- Stop sits beyond the recent range low (bullish) / high (bearish)
- Target = entry +/- reward_ratio x risk
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from market_core.indicators import (
    IndicatorEngine,
    IndicatorSet,
    SwingPoints,
    detect_swing_points,
    engulfing_pattern,
    highest,
    lowest,
    pin_bar_pattern,
    slope,
)
from market_core.models import (
    Candle,
    CandleSeries,
    ChecklistConfig,
    ChecklistResult,
    ChecklistSignal,
    SignalStatus,
    TrendDirection,
)

logger = logging.getLogger(__name__)

# Steps whose verdict decides the trend direction (0-based positions)
TREND_STEP_INDICES = (0, 1)


class EmptySeriesError(ValueError):
    """Raised when a checklist is requested for a series without candles."""


@dataclass(frozen=True)
class StepOutcome:
    """Result of one checklist step before numbering.

    ``bias`` is the direction a met step supports; direction-agnostic
    steps keep it neutral.
    """

    status: SignalStatus
    details: str
    bias: TrendDirection = TrendDirection.NEUTRAL


def _unknown(details: str) -> StepOutcome:
    return StepOutcome(SignalStatus.UNKNOWN, details)


def _not_met(details: str) -> StepOutcome:
    return StepOutcome(SignalStatus.NOT_MET, details)


def _aggregate_direction(outcomes: Sequence[StepOutcome]) -> TrendDirection:
    """Bullish/bearish only if every trend step agrees and nothing contradicts."""
    trend_steps = [outcomes[i] for i in TREND_STEP_INDICES if i < len(outcomes)]
    met_biases = {
        o.bias
        for o in outcomes
        if o.status == SignalStatus.MET and o.bias != TrendDirection.NEUTRAL
    }

    for direction in (TrendDirection.BULLISH, TrendDirection.BEARISH):
        confirmed = all(
            o.status == SignalStatus.MET and o.bias == direction for o in trend_steps
        )
        if confirmed and met_biases == {direction}:
            return direction

    return TrendDirection.NEUTRAL


class ChecklistSignalEngine:
    """Evaluate the trend/entry checklist for a candle series.

    The result is a pure function of the series: the same series always
    yields an equal ChecklistResult.
    """

    def __init__(self, config: ChecklistConfig | None = None):
        self.config = config or ChecklistConfig()
        self.indicator_engine = IndicatorEngine(self.config)

    @property
    def labels(self) -> tuple[str, ...]:
        """Step labels in evaluation order."""
        cfg = self.config
        return (
            f"EMA{cfg.ema_fast_period}/{cfg.ema_slow_period} Alignment",
            "Momentum",
            "Pullback to Value Zone",
            "Reversal Candle",
            "Volume Confirmation",
            "Risk/Reward Viability",
        )

    def evaluate(self, series: CandleSeries) -> ChecklistResult:
        """
        Evaluate every checklist step for a candle series.

        Args:
            series: Candle series, oldest first

        Returns:
            ChecklistResult with one signal per step

        Raises:
            EmptySeriesError: If the series has no candles
        """
        if len(series) == 0:
            raise EmptySeriesError(f"No candles for {series.symbol} {series.interval}")

        candles = series.candles
        indicators = self.indicator_engine.compute(series)
        swings = detect_swing_points(candles, self.config.swing_lookback)

        alignment = self._check_alignment(indicators)
        momentum = self._check_momentum(indicators)

        # None while the trend steps lack history: dependent steps stay unknown
        direction: TrendDirection | None = None
        if SignalStatus.UNKNOWN not in (alignment.status, momentum.status):
            direction = _aggregate_direction([alignment, momentum])

        outcomes = [
            alignment,
            momentum,
            self._check_pullback(candles, indicators, swings, direction),
            self._check_reversal(candles, direction),
            self._check_volume(candles, indicators),
            self._check_risk(candles, direction),
        ]

        signals = tuple(
            ChecklistSignal(step=i + 1, label=label, status=o.status, details=o.details)
            for i, (label, o) in enumerate(zip(self.labels, outcomes))
        )
        trend_direction = _aggregate_direction(outcomes)
        met_count = sum(1 for s in signals if s.is_met)

        entry_price = stop_loss = target = None
        if (
            trend_direction != TrendDirection.NEUTRAL
            and met_count >= self.config.min_met_steps
        ):
            entry, stop, tgt = self._trade_levels(candles, trend_direction)
            if tgt > 0:
                entry_price, stop_loss, target = entry, stop, tgt

        logger.debug(
            "Checklist %s %s: trend=%s met=%d/%d setup=%s",
            series.symbol,
            series.interval,
            trend_direction.value,
            met_count,
            len(signals),
            entry_price is not None,
        )

        return ChecklistResult(
            signals=signals,
            trend_direction=trend_direction,
            entry_price=entry_price,
            stop_loss=stop_loss,
            target=target,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _check_alignment(self, indicators: IndicatorSet) -> StepOutcome:
        cfg = self.config
        fast, slow = indicators.ema_fast, indicators.ema_slow
        if len(fast) < 2 or None in (fast[-1], fast[-2], slow[-1], slow[-2]):
            return _unknown(
                f"Insufficient data for EMA calculation "
                f"(need {cfg.ema_slow_period + 1} candles)"
            )

        if fast[-1] > slow[-1] and fast[-2] > slow[-2]:
            return StepOutcome(
                SignalStatus.MET,
                f"Bullish trend: EMA{cfg.ema_fast_period} above EMA{cfg.ema_slow_period}",
                TrendDirection.BULLISH,
            )
        if fast[-1] < slow[-1] and fast[-2] < slow[-2]:
            return StepOutcome(
                SignalStatus.MET,
                f"Bearish trend: EMA{cfg.ema_fast_period} below EMA{cfg.ema_slow_period}",
                TrendDirection.BEARISH,
            )
        return _not_met("No clear trend alignment")

    def _check_momentum(self, indicators: IndicatorSet) -> StepOutcome:
        cfg = self.config
        fast_slope = slope(indicators.ema_fast, cfg.slope_period)
        rsi_value = indicators.rsi[-1] if indicators.rsi else None
        if fast_slope is None or rsi_value is None:
            return _unknown("Insufficient data for momentum")

        if fast_slope > 0 and rsi_value > 50:
            return StepOutcome(
                SignalStatus.MET,
                f"EMA{cfg.ema_fast_period} rising, RSI {rsi_value:.1f}",
                TrendDirection.BULLISH,
            )
        if fast_slope < 0 and rsi_value < 50:
            return StepOutcome(
                SignalStatus.MET,
                f"EMA{cfg.ema_fast_period} falling, RSI {rsi_value:.1f}",
                TrendDirection.BEARISH,
            )
        return _not_met(f"Mixed momentum: slope {fast_slope:+.4%}, RSI {rsi_value:.1f}")

    def _check_pullback(
        self,
        candles: Sequence[Candle],
        indicators: IndicatorSet,
        swings: SwingPoints,
        direction: TrendDirection | None,
    ) -> StepOutcome:
        cfg = self.config
        needed = max(cfg.ema_fast_period, 2 * cfg.swing_lookback + 1)
        if len(candles) < needed or direction is None:
            return _unknown("Insufficient data for value zone")
        if direction == TrendDirection.NEUTRAL:
            return _not_met("No trend to pull back into")

        current = candles[-1]
        ema_value = indicators.ema_fast[-1]
        distance = abs(current.close - ema_value) / current.close

        if direction == TrendDirection.BULLISH:
            if not swings.lows:
                return _not_met("No swing low to anchor the value zone")
            support = min(candles[i].low for i in swings.lows[-3:])
            detected = distance < cfg.pullback_tolerance and current.close > support
        else:
            if not swings.highs:
                return _not_met("No swing high to anchor the value zone")
            resistance = max(candles[i].high for i in swings.highs[-3:])
            detected = distance < cfg.pullback_tolerance and current.close < resistance

        if detected:
            return StepOutcome(
                SignalStatus.MET,
                f"Price near EMA{cfg.ema_fast_period} ({ema_value:.2f})",
                direction,
            )
        return _not_met("Waiting for pullback to value zone")

    def _check_reversal(
        self,
        candles: Sequence[Candle],
        direction: TrendDirection | None,
    ) -> StepOutcome:
        if len(candles) < 2 or direction is None:
            return _unknown("Insufficient candles for pattern detection")
        if direction == TrendDirection.NEUTRAL:
            return _not_met("No trend to confirm")

        prev, current = candles[-2], candles[-1]
        name = direction.value.capitalize()
        if engulfing_pattern(prev, current) == direction:
            return StepOutcome(SignalStatus.MET, f"{name} engulfing detected", direction)
        if pin_bar_pattern(current) == direction:
            return StepOutcome(SignalStatus.MET, f"{name} pin bar detected", direction)
        return _not_met("No reversal pattern detected")

    def _check_volume(
        self,
        candles: Sequence[Candle],
        indicators: IndicatorSet,
    ) -> StepOutcome:
        cfg = self.config
        average = indicators.volume_sma[-1] if indicators.volume_sma else None
        if average is None:
            return _unknown(f"Insufficient data for {cfg.volume_period}-bar volume average")
        if average == 0:
            return _not_met("No traded volume")

        latest = candles[-1].volume
        if latest >= average * cfg.volume_factor:
            return StepOutcome(
                SignalStatus.MET, f"Volume {latest:.2f} vs average {average:.2f}"
            )
        return _not_met(f"Volume {latest:.2f} below average {average:.2f}")

    def _check_risk(
        self,
        candles: Sequence[Candle],
        direction: TrendDirection | None,
    ) -> StepOutcome:
        cfg = self.config
        if len(candles) < cfg.range_period or direction is None:
            return _unknown("Insufficient data for stop placement")
        if direction == TrendDirection.NEUTRAL:
            return _not_met("No trend direction for a setup")

        entry, stop, target = self._trade_levels(candles, direction)
        risk_percent = abs(entry - stop) / entry * 100
        if risk_percent <= cfg.max_risk_percent and target > 0:
            return StepOutcome(
                SignalStatus.MET,
                f"Stop {stop:.2f} ({risk_percent:.2f}% risk), "
                f"target {target:.2f} (1:{cfg.reward_ratio:g} R:R)",
                direction,
            )
        return _not_met(
            f"Stop too far: {risk_percent:.2f}% risk exceeds {cfg.max_risk_percent:.2f}%"
        )

    # ------------------------------------------------------------------
    # Trade setup
    # ------------------------------------------------------------------

    def _trade_levels(
        self,
        candles: Sequence[Candle],
        direction: TrendDirection,
    ) -> tuple[float, float, float]:
        """Entry, stop and target for a bullish or bearish setup."""
        cfg = self.config
        period = min(cfg.range_period, len(candles))
        entry = candles[-1].close

        if direction == TrendDirection.BULLISH:
            range_low = lowest([c.low for c in candles], period)[-1]
            stop = range_low * (1 - cfg.stop_buffer)
            target = entry + (entry - stop) * cfg.reward_ratio
        else:
            range_high = highest([c.high for c in candles], period)[-1]
            stop = range_high * (1 + cfg.stop_buffer)
            target = entry - (stop - entry) * cfg.reward_ratio

        return entry, stop, target
