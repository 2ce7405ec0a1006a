"""Tests for racing waits."""

import asyncio
import gc

import pytest

from src.utils.waits import first_success


async def _succeed_after(delay):
    await asyncio.sleep(delay)


async def _fail_after(delay):
    await asyncio.sleep(delay)
    raise TimeoutError("timed out")


class TestFirstSuccess:
    @pytest.mark.asyncio
    async def test_fastest_success_wins(self):
        """The first wait to finish successfully wins."""
        result = await first_success({"slow": _succeed_after(0.2), "fast": _succeed_after(0)})
        assert result == "fast"

    @pytest.mark.asyncio
    async def test_early_failure_does_not_end_the_race(self):
        """A failed wait does not end the race while others run."""
        result = await first_success({"navigation": _fail_after(0), "indicator": _succeed_after(0.05)})
        assert result == "indicator"

    @pytest.mark.asyncio
    async def test_all_fail(self):
        """None is returned when every wait fails."""
        assert await first_success({"a": _fail_after(0), "b": _fail_after(0.01)}) is None

    @pytest.mark.asyncio
    async def test_losers_cancelled(self):
        """Losing waits are cancelled."""
        cancelled = []

        async def slow():
            try:
                await asyncio.sleep(1)
            except asyncio.CancelledError:
                cancelled.append("slow")
                raise

        assert await first_success({"slow": slow(), "fast": _succeed_after(0)}) == "fast"
        await asyncio.sleep(0.01)
        assert cancelled == ["slow"]

    @pytest.mark.asyncio
    async def test_empty(self):
        """An empty race returns None."""
        assert await first_success({}) is None

    @pytest.mark.asyncio
    async def test_failure_finishing_with_the_winner_is_retrieved(self):
        """A wait that fails in the same round as the winner leaves no unretrieved exception."""
        loop = asyncio.get_running_loop()
        reported = []
        previous = loop.get_exception_handler()
        loop.set_exception_handler(lambda _loop, context: reported.append(context["message"]))
        try:
            for _ in range(20):
                assert await first_success({"ok": _succeed_after(0), "boom": _fail_after(0)}) == "ok"
            gc.collect()
            await asyncio.sleep(0)
        finally:
            loop.set_exception_handler(previous)
        assert reported == []

    @pytest.mark.asyncio
    async def test_losers_are_finished_on_return(self):
        """Cancelled waits have completed by the time the race returns."""
        started = asyncio.Event()
        tasks = []

        async def slow():
            tasks.append(asyncio.current_task())
            started.set()
            await asyncio.sleep(1)

        async def fast():
            await started.wait()

        assert await first_success({"slow": slow(), "fast": fast()}) == "fast"
        assert tasks[0].done() and tasks[0].cancelled()
