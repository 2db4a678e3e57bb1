"""Checklist signal and trade setup models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SignalStatus(str, Enum):
    """Evaluation status of one checklist step."""

    MET = "met"
    NOT_MET = "not-met"
    UNKNOWN = "unknown"  # Not enough history to evaluate


class TrendDirection(str, Enum):
    """Trend verdict."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class ChecklistSignal(BaseModel):
    """One evaluated checklist step."""

    model_config = ConfigDict(frozen=True)

    step: int = Field(ge=1)
    label: str
    status: SignalStatus
    details: str = ""

    @property
    def is_met(self) -> bool:
        return self.status == SignalStatus.MET


class ChecklistResult(BaseModel):
    """Checklist verdict with an optional trade setup.

    ``entry_price``, ``stop_loss`` and ``target`` are either all set or
    all None. None means no setup applies, never a computed zero.
    """

    model_config = ConfigDict(frozen=True)

    signals: tuple[ChecklistSignal, ...]
    trend_direction: TrendDirection = TrendDirection.NEUTRAL
    entry_price: float | None = None
    stop_loss: float | None = None
    target: float | None = None

    @model_validator(mode="after")
    def _check_trade_setup(self) -> "ChecklistResult":
        fields = (self.entry_price, self.stop_loss, self.target)
        present = [f is not None for f in fields]
        if any(present) and not all(present):
            raise ValueError("entry_price, stop_loss and target must be set together")
        if all(present) and self.trend_direction == TrendDirection.NEUTRAL:
            raise ValueError("A trade setup requires a bullish or bearish trend")
        return self

    @property
    def has_trade_setup(self) -> bool:
        return self.entry_price is not None

    @property
    def met_count(self) -> int:
        """Number of steps with status ``met``."""
        return sum(1 for s in self.signals if s.is_met)

    @property
    def risk_amount(self) -> float | None:
        """Get the risk amount (distance to stop loss)."""
        if not self.has_trade_setup:
            return None
        return abs(self.entry_price - self.stop_loss)

    @property
    def reward_amount(self) -> float | None:
        """Get the reward amount (distance to target)."""
        if not self.has_trade_setup:
            return None
        return abs(self.target - self.entry_price)
