"""Candle (OHLCV) data models."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Candle(BaseModel):
    """Candle (OHLCV) for one fixed time bucket."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    timestamp: int = Field(ge=0)  # bucket open time, epoch ms
    open: float = Field(gt=0)
    high: float = Field(gt=0)
    low: float = Field(gt=0)
    close: float = Field(gt=0)
    volume: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def _check_price_range(self) -> "Candle":
        body_low = min(self.open, self.close)
        body_high = max(self.open, self.close)
        if not (self.low <= body_low and body_high <= self.high):
            raise ValueError(
                f"Inconsistent OHLC at {self.timestamp}: "
                f"low={self.low} open={self.open} close={self.close} high={self.high}"
            )
        return self

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if this is a bearish (red) candle."""
        return self.close < self.open

    @property
    def body_size(self) -> float:
        """Get the absolute size of the candle body."""
        return abs(self.close - self.open)

    @property
    def range_size(self) -> float:
        """Get the full range (high - low) of the candle."""
        return self.high - self.low

    @property
    def upper_wick(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> float:
        return min(self.open, self.close) - self.low


class CandleSeries(BaseModel):
    """Immutable candle sequence for one symbol and interval.

    Candles are ordered by strictly increasing timestamp. A series is
    built fresh on every fetch and replaced, never mutated, on refetch.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    interval: str
    candles: tuple[Candle, ...] = ()

    @model_validator(mode="after")
    def _check_ordering(self) -> "CandleSeries":
        for prev, current in zip(self.candles, self.candles[1:]):
            if current.timestamp <= prev.timestamp:
                raise ValueError(
                    f"Candle timestamps must be strictly increasing: "
                    f"{prev.timestamp} followed by {current.timestamp}"
                )
        return self

    @property
    def last(self) -> Candle | None:
        """Most recent candle, or None for an empty series."""
        return self.candles[-1] if self.candles else None

    @property
    def timestamps(self) -> list[int]:
        return [c.timestamp for c in self.candles]

    @property
    def opens(self) -> list[float]:
        return [c.open for c in self.candles]

    @property
    def highs(self) -> list[float]:
        """Get list of high prices."""
        return [c.high for c in self.candles]

    @property
    def lows(self) -> list[float]:
        """Get list of low prices."""
        return [c.low for c in self.candles]

    @property
    def closes(self) -> list[float]:
        """Get list of close prices."""
        return [c.close for c in self.candles]

    @property
    def volumes(self) -> list[float]:
        """Get list of volumes."""
        return [c.volume for c in self.candles]

    def __len__(self) -> int:
        return len(self.candles)

    def __getitem__(self, index: int) -> Candle:
        return self.candles[index]
