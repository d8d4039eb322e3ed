"""Tests for the host scheduler."""

import asyncio

import pytest

from workspace_mcp.scheduler import Scheduler


class TestScheduler:
    """Tests for Scheduler."""

    @pytest.mark.asyncio
    async def test_resolves_future_with_result(self):
        """Should resolve the future with the callback's return value."""
        scheduler = Scheduler()
        assert await scheduler.submit(lambda: 41 + 1) == 42
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_propagates_exception(self):
        """Should set the callback's exception on the future."""
        scheduler = Scheduler()

        def boom():
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            await scheduler.submit(boom)
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_does_not_run_inline(self):
        """Should defer the callback to a later turn of the loop."""
        scheduler = Scheduler()
        calls = []

        future = scheduler.submit(lambda: calls.append("ran"))

        assert calls == []
        await future
        assert calls == ["ran"]
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_runs_in_submission_order(self):
        """Should run callbacks one at a time in FIFO order."""
        scheduler = Scheduler()
        order = []

        futures = [scheduler.submit(lambda i=i: order.append(i)) for i in range(5)]
        await asyncio.gather(*futures)

        assert order == [0, 1, 2, 3, 4]
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_worker_survives_failures(self):
        """Should keep processing after a failing callback."""
        scheduler = Scheduler()

        failing = scheduler.submit(lambda: 1 / 0)
        ok = scheduler.submit(lambda: "still running")

        with pytest.raises(ZeroDivisionError):
            await failing
        assert await ok == "still running"
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_queued_work(self):
        """Should cancel callbacks that never started."""
        scheduler = Scheduler()

        future = scheduler.submit(lambda: "never")
        await scheduler.stop()

        assert future.cancelled()
        assert scheduler.pending == 0
        assert scheduler.is_running is False

    @pytest.mark.asyncio
    async def test_skips_cancelled_futures(self):
        """Should not run a callback whose future was cancelled."""
        scheduler = Scheduler()
        calls = []

        future = scheduler.submit(lambda: calls.append("ran"))
        future.cancel()
        await scheduler.submit(lambda: None)

        assert calls == []
        await scheduler.stop()
