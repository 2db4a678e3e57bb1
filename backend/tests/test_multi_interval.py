"""Tests for the multi-interval orchestrator."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from market_app.errors import UpstreamError
from market_app.services import CandleSource, IntervalStatus, MultiIntervalOrchestrator
from market_core.checklist import ChecklistSignalEngine
from market_core.models import Candle, CandleSeries, interval_seconds


def make_series(interval, n=3, symbol="BTCUSDT"):
    step = interval_seconds(interval) * 1000
    candles = [
        Candle(timestamp=i * step, open=100 + i, high=101 + i, low=99 + i, close=100.5 + i, volume=1)
        for i in range(n)
    ]
    return CandleSeries(symbol=symbol, interval=interval, candles=candles)


def make_source(failing=(), gates=None):
    """Mock CandleSource: intervals in ``failing`` raise, ``gates`` block until set."""
    gates = gates or {}

    async def fetch(symbol, interval, limit=100, wait_for_fresh=False):
        if interval in gates:
            await gates[interval].wait()
        if interval in failing:
            raise UpstreamError(503)
        return make_series(interval, symbol=symbol)

    source = AsyncMock(spec=CandleSource)
    source.fetch.side_effect = fetch
    return source


class TestOrchestratorState:
    """Tests for per-interval state and aggregate flags."""

    def test_requires_intervals(self):
        with pytest.raises(ValueError):
            MultiIntervalOrchestrator(make_source(), "BTCUSDT", intervals=[])

    def test_duplicate_intervals_collapse(self):
        orchestrator = MultiIntervalOrchestrator(make_source(), "BTCUSDT", ["3m", "3m", "1h"])
        assert orchestrator.intervals == ("3m", "1h")

    def test_initial_snapshot_is_idle(self):
        view = MultiIntervalOrchestrator(make_source(), "BTCUSDT").snapshot()

        assert [s.interval for s in view.intervals] == ["3m", "15m", "1h"]
        assert all(s.status == IntervalStatus.IDLE for s in view.intervals)
        assert not view.has_any_data
        assert not view.all_loading
        assert not view.has_errors

    @pytest.mark.asyncio
    async def test_one_failure_does_not_discard_others(self):
        orchestrator = MultiIntervalOrchestrator(make_source(failing={"15m"}), "BTCUSDT")

        view = await orchestrator.refresh()

        assert view.get("3m").status == IntervalStatus.READY
        assert view.get("1h").status == IntervalStatus.READY
        failed = view.get("15m")
        assert failed.status == IntervalStatus.FAILED
        assert isinstance(failed.error, UpstreamError)
        assert failed.candles is None

        assert view.has_any_data
        assert view.has_errors
        assert not view.all_loading

    @pytest.mark.asyncio
    async def test_all_loading_while_pending(self):
        gates = {i: asyncio.Event() for i in ("3m", "15m", "1h")}
        orchestrator = MultiIntervalOrchestrator(make_source(gates=gates), "BTCUSDT")

        refresh = asyncio.create_task(orchestrator.refresh())
        for _ in range(3):
            await asyncio.sleep(0)

        view = orchestrator.snapshot()
        assert view.all_loading
        assert not view.has_any_data

        for gate in gates.values():
            gate.set()
        view = await refresh
        assert not view.all_loading
        assert view.has_any_data

    @pytest.mark.asyncio
    async def test_slow_interval_does_not_block(self):
        gates = {"1h": asyncio.Event()}
        orchestrator = MultiIntervalOrchestrator(make_source(gates=gates), "BTCUSDT")

        refresh = asyncio.create_task(orchestrator.refresh())
        for _ in range(3):
            await asyncio.sleep(0)

        view = orchestrator.snapshot()
        assert view.get("3m").status == IntervalStatus.READY
        assert view.get("1h").is_loading
        assert view.has_any_data
        assert not view.all_loading

        gates["1h"].set()
        await refresh

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_candles(self):
        failing = set()
        orchestrator = MultiIntervalOrchestrator(make_source(failing=failing), "BTCUSDT", ["3m"])

        first = await orchestrator.refresh_interval("3m")
        failing.add("3m")
        second = await orchestrator.refresh_interval("3m")

        assert first.status == IntervalStatus.READY
        assert second.status == IntervalStatus.FAILED
        assert second.candles is first.candles
        assert not orchestrator.snapshot().has_any_data

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_failed(self):
        source = AsyncMock(spec=CandleSource)
        source.fetch.side_effect = RuntimeError("boom")
        orchestrator = MultiIntervalOrchestrator(source, "BTCUSDT", ["3m"])

        state = await orchestrator.refresh_interval("3m")

        assert state.status == IntervalStatus.FAILED
        assert isinstance(state.error, RuntimeError)

    @pytest.mark.asyncio
    async def test_snapshot_is_immutable(self):
        orchestrator = MultiIntervalOrchestrator(make_source(failing={"3m"}), "BTCUSDT", ["3m"])

        before = orchestrator.snapshot()
        await orchestrator.refresh()

        assert before.get("3m").status == IntervalStatus.IDLE
        assert orchestrator.snapshot().get("3m").status == IntervalStatus.FAILED

    @pytest.mark.asyncio
    async def test_checklists_for_ready_intervals(self):
        orchestrator = MultiIntervalOrchestrator(make_source(failing={"15m"}), "BTCUSDT")
        await orchestrator.refresh()

        results = orchestrator.checklists(ChecklistSignalEngine())

        assert set(results) == {"3m", "1h"}
        assert len(results["3m"].signals) == 6


class TestPolling:
    """Tests for background polling."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        source = make_source()
        orchestrator = MultiIntervalOrchestrator(source, "BTCUSDT", ["3m", "1h"], limit=50)

        orchestrator.start()
        for _ in range(3):
            await asyncio.sleep(0)

        assert orchestrator.is_running
        assert orchestrator.snapshot().get("3m").status == IntervalStatus.READY
        source.fetch.assert_any_await("BTCUSDT", "3m", 50, wait_for_fresh=True)
        source.fetch.assert_any_await("BTCUSDT", "1h", 50, wait_for_fresh=True)

        await orchestrator.stop()
        assert not orchestrator.is_running
