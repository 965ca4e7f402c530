"""Unit tests for RateLimitedRunner."""

from __future__ import annotations

import asyncio

import pytest

from src.utils.concurrency import RateLimitedRunner
from src.utils.errors import LLMError, TransientNetworkError


class FakeClock:
    """Manually advanced monotonic clock with a recording sleep."""

    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


async def _echo(value: str) -> str:
    return value


class TestRateLimitedRunner:
    def test_rejects_negative_interval(self) -> None:
        with pytest.raises(ValueError):
            RateLimitedRunner(interval_seconds=-1)

    async def test_first_call_does_not_wait(self) -> None:
        clock = FakeClock()
        runner = RateLimitedRunner(interval_seconds=1.0, clock=clock, sleep=clock.sleep)

        assert await runner.run(_echo, "a") == "a"
        assert clock.sleeps == []

    async def test_waits_out_remaining_interval(self) -> None:
        clock = FakeClock()
        runner = RateLimitedRunner(interval_seconds=1.0, clock=clock, sleep=clock.sleep)

        await runner.run(_echo, "a")
        clock.now += 0.25
        await runner.run(_echo, "b")

        assert clock.sleeps == [pytest.approx(0.75)]

    async def test_no_wait_when_interval_already_elapsed(self) -> None:
        clock = FakeClock()
        runner = RateLimitedRunner(interval_seconds=1.0, clock=clock, sleep=clock.sleep)

        await runner.run(_echo, "a")
        clock.now += 5
        await runner.run(_echo, "b")

        assert clock.sleeps == []

    async def test_interval_counts_from_failed_call(self) -> None:
        clock = FakeClock()
        runner = RateLimitedRunner(interval_seconds=2.0, clock=clock, sleep=clock.sleep)

        async def _boom() -> None:
            raise LLMError("upstream 500")

        with pytest.raises(LLMError):
            await runner.run(_boom)
        await runner.run(_echo, "after")

        assert clock.sleeps == [pytest.approx(2.0)]

    async def test_passes_keyword_arguments(self) -> None:
        async def _join(a: str, *, b: str) -> str:
            return a + b

        runner = RateLimitedRunner(interval_seconds=0)
        assert await runner.run(_join, "x", b="y") == "xy"

    async def test_calls_are_serialised(self) -> None:
        runner = RateLimitedRunner(interval_seconds=0)
        active = 0
        peak = 0

        async def _work() -> None:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        await asyncio.gather(*(runner.run(_work) for _ in range(5)))
        assert peak == 1

    async def test_timeout_becomes_transient_error(self) -> None:
        runner = RateLimitedRunner(interval_seconds=0, timeout_seconds=0.01)

        async def _slow() -> None:
            await asyncio.sleep(1)

        with pytest.raises(TransientNetworkError):
            await runner.run(_slow)
