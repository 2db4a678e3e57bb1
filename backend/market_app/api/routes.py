"""REST API routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from market_app.config import get_settings
from market_app.services import (
    CandleSource,
    IntervalStatus,
    MultiIntervalOrchestrator,
    OrderBookSource,
    TimeframeProvider,
    resolve_timeframe,
)
from market_core.checklist import ChecklistSignalEngine
from market_core.indicators import IndicatorEngine
from market_core.models import ChecklistResult, DepthAnalysis, DepthConfig, FlipResult, MarketTurn
from market_core.orderbook import OrderBookAnalyzer
from market_core.turns import MarketTurnDetector

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class TimeframeResponse(BaseModel):
    """Active timeframe response."""

    timeframe: str


class IntervalStateResponse(BaseModel):
    """One interval of the multi-interval view."""

    interval: str
    status: str
    is_loading: bool
    candle_count: int
    last_close: Optional[float] = None
    trend: Optional[str] = None
    turn: Optional[MarketTurn] = None
    flip: Optional[FlipResult] = None
    error: Optional[str] = None


class MultiIntervalResponse(BaseModel):
    """Multi-interval view response."""

    symbol: str
    intervals: list[IntervalStateResponse]
    has_any_data: bool
    all_loading: bool
    has_errors: bool


# Dependencies (services live on app.state, set up in the lifespan)
def get_candle_source(request: Request) -> CandleSource:
    return request.app.state.candle_source


def get_orderbook_source(request: Request) -> OrderBookSource:
    return request.app.state.orderbook_source


def get_timeframe_provider(request: Request) -> TimeframeProvider | None:
    return getattr(request.app.state, "timeframe_provider", None)


def get_checklist_engine() -> ChecklistSignalEngine:
    return ChecklistSignalEngine()


@router.get("/timeframe", response_model=TimeframeResponse)
async def get_timeframe(provider: TimeframeProvider | None = Depends(get_timeframe_provider)):
    """Get the active checklist timeframe."""
    settings = get_settings()
    return TimeframeResponse(timeframe=await resolve_timeframe(provider, settings.default_timeframe))


@router.get("/checklist/{symbol}", response_model=ChecklistResult)
async def get_checklist(
    symbol: str,
    interval: Optional[str] = Query(None, description="Candle interval (defaults to the active timeframe)"),
    limit: Optional[int] = Query(None, ge=1, le=1500, description="Candles to evaluate"),
    source: CandleSource = Depends(get_candle_source),
    provider: TimeframeProvider | None = Depends(get_timeframe_provider),
    engine: ChecklistSignalEngine = Depends(get_checklist_engine),
):
    """Evaluate the checklist for a symbol."""
    settings = get_settings()
    if interval is None:
        interval = await resolve_timeframe(provider, settings.default_timeframe)

    series = await source.fetch(symbol, interval, limit or settings.candle_limit)
    return engine.evaluate(series)


@router.get("/intervals/{symbol}", response_model=MultiIntervalResponse)
async def get_intervals(
    symbol: str,
    limit: Optional[int] = Query(None, ge=1, le=1500, description="Candles per interval"),
    source: CandleSource = Depends(get_candle_source),
):
    """Load every configured interval and report per-interval state."""
    settings = get_settings()
    orchestrator = MultiIntervalOrchestrator(
        source, symbol, settings.intervals, limit or settings.candle_limit
    )
    view = await orchestrator.refresh()
    indicator_engine = IndicatorEngine()
    turn_detector = MarketTurnDetector()

    intervals = []
    for state in view.intervals:
        trend = None
        last_close = None
        turn = None
        flip = None
        if state.status == IntervalStatus.READY and state.has_data:
            trend = indicator_engine.compute(state.candles).trend.value
            last_close = state.candles.last.close
            turn = turn_detector.detect(state.candles).turn
            flip = turn_detector.detect_flip(state.candles)
        intervals.append(
            IntervalStateResponse(
                interval=state.interval,
                status=state.status.value,
                is_loading=state.is_loading,
                candle_count=len(state.candles) if state.candles is not None else 0,
                last_close=last_close,
                trend=trend,
                turn=turn,
                flip=flip,
                error=str(state.error) if state.error else None,
            )
        )

    return MultiIntervalResponse(
        symbol=symbol,
        intervals=intervals,
        has_any_data=view.has_any_data,
        all_loading=view.all_loading,
        has_errors=view.has_errors,
    )


@router.get("/depth/{symbol}", response_model=DepthAnalysis)
async def get_depth(
    symbol: str,
    limit: Optional[int] = Query(None, description="Order book levels to fetch per side"),
    display_limit: Optional[int] = Query(None, ge=1, le=1000, description="Levels per side to analyze"),
    wall_threshold: Optional[float] = Query(None, gt=0, le=100, description="Wall threshold (% of max quantity)"),
    source: OrderBookSource = Depends(get_orderbook_source),
):
    """Get spread, depth imbalance, cumulative depth and liquidity walls."""
    settings = get_settings()
    config = DepthConfig(
        display_limit=display_limit or settings.depth_display_limit,
        wall_threshold_percent=wall_threshold or settings.wall_threshold_percent,
    )

    book = await source.fetch(symbol, limit or settings.depth_limit)
    return OrderBookAnalyzer(config).analyze(book)
