"""Multi-interval candle loading.

Each tracked interval moves through
``IDLE -> LOADING -> READY | FAILED -> LOADING (on refresh)``.
Intervals load concurrently and independently: a pending or failed
interval never blocks or cancels the others. Each interval's state is
written only by its own fetch; readers get immutable snapshots.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from market_app.errors import MarketDataError
from market_app.services.candle_source import CandleSource
from market_core.checklist import ChecklistSignalEngine
from market_core.models import (
    DEFAULT_INTERVALS,
    CandleSeries,
    ChecklistResult,
    interval_seconds,
)

logger = logging.getLogger(__name__)


class IntervalStatus(str, Enum):
    """Load state of one interval."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class IntervalState:
    """Snapshot of one interval.

    ``candles`` keeps the last good series while the interval reloads or
    after a failed refresh.
    """

    interval: str
    status: IntervalStatus = IntervalStatus.IDLE
    candles: CandleSeries | None = None
    error: Exception | None = None

    @property
    def is_loading(self) -> bool:
        return self.status == IntervalStatus.LOADING

    @property
    def has_data(self) -> bool:
        return self.candles is not None and len(self.candles) > 0


@dataclass(frozen=True)
class MultiIntervalView:
    """Aggregate view over per-interval snapshots.

    The flags are recomputed from ``intervals`` on every access.
    """

    symbol: str
    intervals: tuple[IntervalState, ...]

    @property
    def has_any_data(self) -> bool:
        """At least one interval is ready with a non-empty series."""
        return any(s.status == IntervalStatus.READY and s.has_data for s in self.intervals)

    @property
    def all_loading(self) -> bool:
        """Every interval is loading."""
        return all(s.is_loading for s in self.intervals)

    @property
    def has_errors(self) -> bool:
        """At least one interval failed."""
        return any(s.status == IntervalStatus.FAILED for s in self.intervals)

    def get(self, interval: str) -> IntervalState | None:
        for state in self.intervals:
            if state.interval == interval:
                return state
        return None


class MultiIntervalOrchestrator:
    """Load one symbol's candles for several intervals concurrently."""

    def __init__(
        self,
        source: CandleSource,
        symbol: str,
        intervals: Sequence[str] = DEFAULT_INTERVALS,
        limit: int = 100,
    ):
        if not intervals:
            raise ValueError("At least one interval is required")
        self._source = source
        self.symbol = symbol
        self.intervals: tuple[str, ...] = tuple(dict.fromkeys(intervals))
        self.limit = limit
        self._states: dict[str, IntervalState] = {i: IntervalState(interval=i) for i in self.intervals}
        self._poll_tasks: dict[str, asyncio.Task] = {}

    def snapshot(self) -> MultiIntervalView:
        """Immutable view of the current per-interval states."""
        return MultiIntervalView(
            symbol=self.symbol,
            intervals=tuple(self._states[i] for i in self.intervals),
        )

    async def refresh(self, wait_for_fresh: bool = False) -> MultiIntervalView:
        """Refresh every interval concurrently and return the resulting view."""
        await asyncio.gather(
            *(self.refresh_interval(i, wait_for_fresh) for i in self.intervals)
        )
        return self.snapshot()

    async def refresh_interval(self, interval: str, wait_for_fresh: bool = False) -> IntervalState:
        """Load one interval, recording READY or FAILED."""
        previous = self._states[interval]
        self._states[interval] = IntervalState(
            interval=interval,
            status=IntervalStatus.LOADING,
            candles=previous.candles,
        )

        try:
            series = await self._source.fetch(
                self.symbol, interval, self.limit, wait_for_fresh=wait_for_fresh
            )
        except MarketDataError as e:
            logger.warning(f"{self.symbol} {interval} failed: {e}")
            state = IntervalState(interval, IntervalStatus.FAILED, previous.candles, e)
        except Exception as e:
            logger.exception(f"{self.symbol} {interval} failed unexpectedly")
            state = IntervalState(interval, IntervalStatus.FAILED, previous.candles, e)
        else:
            state = IntervalState(interval, IntervalStatus.READY, series)

        self._states[interval] = state
        return state

    def checklists(self, engine: ChecklistSignalEngine) -> dict[str, ChecklistResult]:
        """Checklist results for every ready interval with candles."""
        return {
            s.interval: engine.evaluate(s.candles)
            for s in self.snapshot().intervals
            if s.status == IntervalStatus.READY and s.has_data
        }

    # ------------------------------------------------------------------
    # Background polling
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Poll every interval in the background, each on its own period."""
        for interval in self.intervals:
            task = self._poll_tasks.get(interval)
            if task is None or task.done():
                self._poll_tasks[interval] = asyncio.create_task(self._poll(interval))
        logger.info(f"Polling {self.symbol} on {', '.join(self.intervals)}")

    async def _poll(self, interval: str) -> None:
        period = interval_seconds(interval)
        while True:
            await self.refresh_interval(interval, wait_for_fresh=True)
            await asyncio.sleep(period)

    async def stop(self) -> None:
        """Stop background polling."""
        tasks = list(self._poll_tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._poll_tasks.clear()

    @property
    def is_running(self) -> bool:
        return any(not t.done() for t in self._poll_tasks.values())
