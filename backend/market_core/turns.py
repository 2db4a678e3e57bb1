"""Market turn and regime flip detection.

Pure business logic over a candle series, no I/O.

Turns:
- Major - fast EMA crosses the slow EMA and stays across for one more bar
- Micro - engulfing or pin bar reversal, or three closes in one direction
          ending at the recent low (bullish) / high (bearish)
A major turn takes priority over a micro turn.

Flips:
- Regime - bull/bear when the fast EMA sits on one side of the slow EMA for
           ``flip_confirmation`` of the latest bars, transition otherwise
- Flip   - the most recent regime change whose new side held for at least
           ``flip_confirmation`` bars
"""

import logging
from typing import Sequence

from market_core.indicators import ema, engulfing_pattern, pin_bar_pattern
from market_core.models import (
    Candle,
    CandleSeries,
    FlipDirection,
    FlipResult,
    MarketRegime,
    MarketTurn,
    TrendDirection,
    TurnConfig,
    TurnResult,
    TurnType,
)

logger = logging.getLogger(__name__)


def _no_turn(reason: str) -> MarketTurn:
    return MarketTurn(detected=False, reason=reason)


def _latest(values: Sequence[float | None]) -> float | None:
    return values[-1] if values else None


class MarketTurnDetector:
    """Detects market turns and EMA regime flips for one candle series."""

    def __init__(self, config: TurnConfig | None = None):
        self.config = config or TurnConfig()

    @property
    def _ema_label(self) -> tuple[str, str]:
        return f"EMA{self.config.ema_fast_period}", f"EMA{self.config.ema_slow_period}"

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def detect(self, series: CandleSeries) -> TurnResult:
        """
        Detect the current market turn.

        Args:
            series: Closed candles, oldest first

        Returns:
            TurnResult with the selected turn and the latest EMA values
        """
        closes = series.closes
        ema_fast = ema(closes, self.config.ema_fast_period)
        ema_slow = ema(closes, self.config.ema_slow_period)

        major = self._major_turn(series, ema_fast, ema_slow)
        micro = self.detect_micro(series)

        if major.detected:
            turn = major
        elif micro.detected:
            turn = micro
        else:
            turn = _no_turn("No turn detected")

        if turn.detected:
            logger.debug(
                "Turn %s %s: %s %s (%s)",
                series.symbol,
                series.interval,
                turn.type.value,
                turn.direction.value,
                turn.reason,
            )

        return TurnResult(
            turn=turn,
            ema_fast=_latest(ema_fast),
            ema_slow=_latest(ema_slow),
            major_detected=major.detected,
            micro_detected=micro.detected,
            candle_count=len(series),
        )

    def detect_major(self, series: CandleSeries) -> MarketTurn:
        """Fast/slow EMA crossover confirmed by the following bar."""
        closes = series.closes
        return self._major_turn(
            series,
            ema(closes, self.config.ema_fast_period),
            ema(closes, self.config.ema_slow_period),
        )

    def _major_turn(
        self,
        series: CandleSeries,
        ema_fast: Sequence[float | None],
        ema_slow: Sequence[float | None],
    ) -> MarketTurn:
        cfg = self.config
        fast_label, slow_label = self._ema_label
        if len(series) < cfg.ema_slow_period:
            return _no_turn("Insufficient data for major turn detection")

        window = list(zip(ema_fast[-3:], ema_slow[-3:]))
        if len(window) < 3 or any(f is None or s is None for f, s in window):
            return _no_turn("Insufficient EMA data")

        (fast2, slow2), (fast1, slow1), (fast0, slow0) = window
        if fast2 <= slow2 and fast1 > slow1 and fast0 > slow0:
            direction = TrendDirection.BULLISH
            reason = f"{fast_label} crossed above {slow_label} with confirmation"
        elif fast2 >= slow2 and fast1 < slow1 and fast0 < slow0:
            direction = TrendDirection.BEARISH
            reason = f"{fast_label} crossed below {slow_label} with confirmation"
        else:
            return _no_turn("No major turn detected")

        return MarketTurn(
            detected=True,
            direction=direction,
            type=TurnType.MAJOR,
            timestamp=series.last.timestamp,
            interval=series.interval,
            confidence=cfg.major_confidence,
            reason=reason,
        )

    def detect_micro(self, series: CandleSeries) -> MarketTurn:
        """Reversal candle or exhaustion on the latest bar.

        Bullish patterns are checked first. Within a direction the reason
        names the first match: engulfing, then pin bar, then exhaustion.
        """
        cfg = self.config
        if len(series) < cfg.micro_window:
            return _no_turn("Insufficient data for micro-turn detection")

        recent = series.candles[-cfg.micro_window:]
        last, prev = recent[-1], recent[-2]
        engulfing = engulfing_pattern(prev, last)
        pin_bar = pin_bar_pattern(last)

        bull, bear = TrendDirection.BULLISH, TrendDirection.BEARISH
        checks = (
            (bull, engulfing == bull, "Bullish engulfing pattern"),
            (bull, pin_bar == bull, "Hammer reversal pattern"),
            (bull, self._exhaustion(recent, bull), "Bullish exhaustion at support"),
            (bear, engulfing == bear, "Bearish engulfing pattern"),
            (bear, pin_bar == bear, "Shooting star reversal pattern"),
            (bear, self._exhaustion(recent, bear), "Bearish exhaustion at resistance"),
        )
        for direction, matched, reason in checks:
            if matched:
                return MarketTurn(
                    detected=True,
                    direction=direction,
                    type=TurnType.MICRO,
                    timestamp=last.timestamp,
                    interval=series.interval,
                    confidence=cfg.micro_confidence,
                    reason=reason,
                )

        return _no_turn("No micro-turn detected")

    def _exhaustion(self, recent: Sequence[Candle], direction: TrendDirection) -> bool:
        """Three closes in one direction ending at the recent range extreme.

        Rising closes that still print the recent low exhaust sellers;
        falling closes that still print the recent high exhaust buyers.
        """
        cfg = self.config
        last = recent[-1]
        c3, c2, c1 = (c.close for c in recent[-3:])
        window = recent[-cfg.micro_range:]

        if direction == TrendDirection.BULLISH:
            recent_low = min(c.low for c in window)
            return c3 < c2 < c1 and last.low <= recent_low * (1 + cfg.exhaustion_tolerance)

        recent_high = max(c.high for c in window)
        return c3 > c2 > c1 and last.high >= recent_high * (1 - cfg.exhaustion_tolerance)

    # ------------------------------------------------------------------
    # Regime flips
    # ------------------------------------------------------------------

    def detect_flip(self, series: CandleSeries, confirmation: int | None = None) -> FlipResult:
        """
        Classify the EMA regime and find the most recent confirmed flip.

        Args:
            series: Closed candles, oldest first
            confirmation: Bars the new side must hold (defaults to config)

        Returns:
            FlipResult; neutral with no flip while the slow EMA is unavailable
        """
        cfg = self.config
        confirmation = confirmation or cfg.flip_confirmation
        if len(series) < cfg.ema_slow_period:
            return FlipResult(regime=MarketRegime.NEUTRAL)

        closes = series.closes
        ema_fast = ema(closes, cfg.ema_fast_period)
        ema_slow = ema(closes, cfg.ema_slow_period)
        pairs = [
            (i, fast, slow)
            for i, (fast, slow) in enumerate(zip(ema_fast, ema_slow))
            if fast is not None and slow is not None
        ]
        if not pairs:
            return FlipResult(regime=MarketRegime.NEUTRAL)

        # The latest bar plus ``confirmation`` bars before it
        window = pairs[-(confirmation + 1):]
        bullish = sum(1 for _, fast, slow in window if fast > slow)
        bearish = sum(1 for _, fast, slow in window if fast < slow)
        if bullish >= confirmation:
            regime = MarketRegime.BULL
        elif bearish >= confirmation:
            regime = MarketRegime.BEAR
        else:
            regime = MarketRegime.TRANSITION

        last_flip = None
        flip_timestamp = None
        newer_bull = None
        run = 0
        first_of_run = None
        for i, fast, slow in reversed(pairs):
            is_bull = fast > slow
            if newer_bull is None or is_bull == newer_bull:
                run += 1
            elif run >= confirmation:
                last_flip = FlipDirection.BEAR_TO_BULL if newer_bull else FlipDirection.BULL_TO_BEAR
                flip_timestamp = series[first_of_run].timestamp
                break
            else:
                run = 1
            newer_bull = is_bull
            first_of_run = i

        if last_flip is not None:
            logger.debug(
                "Flip %s %s: %s at %s (regime %s)",
                series.symbol,
                series.interval,
                last_flip.value,
                flip_timestamp,
                regime.value,
            )

        return FlipResult(
            regime=regime,
            last_flip=last_flip,
            flip_timestamp=flip_timestamp,
            ema_fast=pairs[-1][1],
            ema_slow=pairs[-1][2],
            confirmation_candles=confirmation,
        )
