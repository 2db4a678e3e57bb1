"""Market turn and regime flip models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from market_core.models.signal import TrendDirection


class TurnType(str, Enum):
    """Kind of market turn."""

    MAJOR = "major"  # Fast/slow EMA crossover
    MICRO = "micro"  # Reversal candle or exhaustion


class MarketRegime(str, Enum):
    """EMA regime over the last closed candles."""

    BULL = "bull"
    BEAR = "bear"
    TRANSITION = "transition"
    NEUTRAL = "neutral"  # Not enough history


class FlipDirection(str, Enum):
    """Direction of a confirmed regime change."""

    BEAR_TO_BULL = "bear-to-bull"
    BULL_TO_BEAR = "bull-to-bear"


class MarketTurn(BaseModel):
    """A detected (or absent) market turn.

    ``direction``, ``type``, ``timestamp`` and ``interval`` are set exactly
    when ``detected`` is true. ``reason`` always explains the verdict.
    """

    model_config = ConfigDict(frozen=True)

    detected: bool = False
    direction: TrendDirection | None = None
    type: TurnType | None = None
    timestamp: int | None = None
    interval: str | None = None
    confidence: float = Field(default=0.0, ge=0, le=1)
    reason: str = ""

    @model_validator(mode="after")
    def _check_detected_fields(self) -> "MarketTurn":
        fields = (self.direction, self.type, self.timestamp, self.interval)
        if self.detected and any(f is None for f in fields):
            raise ValueError("A detected turn needs direction, type, timestamp and interval")
        if not self.detected and (any(f is not None for f in fields) or self.confidence):
            raise ValueError("An undetected turn carries no direction, type, timestamp or confidence")
        if self.direction == TrendDirection.NEUTRAL:
            raise ValueError("A turn direction is bullish or bearish")
        return self

    def event_key(self, symbol: str) -> str | None:
        """Stable key used to report each turn only once."""
        if not self.detected:
            return None
        return f"{symbol}-{self.direction.value}-{self.type.value}-{self.interval}-{self.timestamp}"


class TurnResult(BaseModel):
    """Selected turn (major first, then micro) with the EMA values behind it."""

    model_config = ConfigDict(frozen=True)

    turn: MarketTurn
    ema_fast: float | None = None
    ema_slow: float | None = None
    major_detected: bool = False
    micro_detected: bool = False
    candle_count: int = 0


class FlipResult(BaseModel):
    """Current EMA regime and the most recent confirmed flip."""

    model_config = ConfigDict(frozen=True)

    regime: MarketRegime = MarketRegime.NEUTRAL
    last_flip: FlipDirection | None = None
    flip_timestamp: int | None = None  # First candle of the new regime
    ema_fast: float | None = None
    ema_slow: float | None = None
    confirmation_candles: int = 0

    def event_key(self, symbol: str) -> str | None:
        """Stable key used to report each flip only once."""
        if self.last_flip is None or self.flip_timestamp is None:
            return None
        return f"{symbol}-{self.last_flip.value}-{self.flip_timestamp}"
