"""Checklist and order book analysis configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChecklistConfig(BaseModel):
    """Checklist strategy parameters.

    Defaults follow the 3m checklist: EMA20/50 trend, 5-bar swings,
    a 2% value zone around EMA20 and a 1:2 risk/reward target.
    """

    # Indicator periods
    ema_fast_period: int = Field(default=20, ge=1)
    ema_slow_period: int = Field(default=50, ge=1)
    slope_period: int = Field(default=3, ge=1)  # Bars used for EMA slope
    rsi_period: int = Field(default=14, ge=1)

    # Structure
    swing_lookback: int = Field(default=5, ge=1)  # Bars on each side of a swing point
    pullback_tolerance: float = Field(default=0.02, gt=0)  # Max close/EMA20 distance (ratio)

    # Volume confirmation: latest volume >= factor * SMA(volume)
    volume_period: int = Field(default=20, ge=1)
    volume_factor: float = Field(default=1.0, gt=0)

    # Trade setup
    range_period: int = Field(default=20, ge=1)  # Bars of recent high/low used for stops
    stop_buffer: float = Field(default=0.005, gt=0, lt=1)  # 0.5% beyond the range extreme
    reward_ratio: float = Field(default=2.0, gt=0)
    max_risk_percent: float = Field(default=3.0, gt=0)  # Max stop distance as % of entry

    # Minimum met steps before a trade setup is emitted (majority of 6)
    min_met_steps: int = Field(default=4, ge=1)


class DepthConfig(BaseModel):
    """Order book analysis parameters."""

    display_limit: int = Field(default=50, ge=1)
    wall_threshold_percent: float = Field(default=50.0, gt=0, le=100)


class TurnConfig(BaseModel):
    """Market turn and regime flip parameters.

    Major turns and flips read the EMA20/50 pair; micro turns read the
    last few candles for reversal patterns and exhaustion.
    """

    ema_fast_period: int = Field(default=20, ge=1)
    ema_slow_period: int = Field(default=50, ge=1)

    # Micro turns
    micro_window: int = Field(default=10, ge=3)  # Candles required for a micro turn
    micro_range: int = Field(default=5, ge=1)  # Candles defining support/resistance
    exhaustion_tolerance: float = Field(default=0.002, ge=0, lt=1)  # Distance to the range extreme (ratio)

    # Regime flips: closed candles on one side of the slow EMA
    flip_confirmation: int = Field(default=3, ge=1)

    major_confidence: float = Field(default=0.85, ge=0, le=1)
    micro_confidence: float = Field(default=0.70, ge=0, le=1)
