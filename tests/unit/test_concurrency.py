"""Unit tests for gather_settled, RateLimiter and CircuitBreaker."""

from __future__ import annotations

import asyncio

import pytest

from consensus_verifier.utils.circuit_breaker import CircuitBreaker, CircuitState
from consensus_verifier.utils.concurrency import RateLimiter, gather_settled


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


# ======================================================================
# gather_settled
# ======================================================================


class TestGatherSettled:
    @pytest.mark.asyncio
    async def test_preserves_order_and_collects_errors(self) -> None:
        async def ok(value: int, delay: float) -> int:
            await asyncio.sleep(delay)
            return value

        async def boom() -> int:
            raise RuntimeError("boom")

        results = await gather_settled([ok(1, 0.02), boom(), ok(3, 0.0)])
        assert results[0] == 1
        assert isinstance(results[1], RuntimeError)
        assert results[2] == 3

    @pytest.mark.asyncio
    async def test_timeout_does_not_cancel_siblings(self) -> None:
        async def slow() -> str:
            await asyncio.sleep(5)
            return "late"

        async def fast() -> str:
            return "fast"

        results = await gather_settled([slow(), fast()], timeout=0.05)
        assert isinstance(results[0], asyncio.TimeoutError)
        assert results[1] == "fast"

    @pytest.mark.asyncio
    async def test_calls_run_concurrently(self) -> None:
        async def nap() -> None:
            await asyncio.sleep(0.1)

        loop = asyncio.get_running_loop()
        start = loop.time()
        await gather_settled([nap() for _ in range(5)])
        assert loop.time() - start < 0.4


# ======================================================================
# RateLimiter
# ======================================================================


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_first_call_is_free_then_spaced(self) -> None:
        clock = _FakeClock()
        sleeps: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)
            clock.now += seconds

        limiter = RateLimiter(2.0, clock=clock, sleep=fake_sleep)
        assert await limiter.acquire() == 0.0
        clock.now += 0.5
        waited = await limiter.acquire()
        assert waited == pytest.approx(1.5)
        assert sleeps == [pytest.approx(1.5)]

    @pytest.mark.asyncio
    async def test_no_wait_when_interval_elapsed(self) -> None:
        clock = _FakeClock()

        async def fake_sleep(seconds: float) -> None:
            raise AssertionError("should not sleep")

        limiter = RateLimiter(1.0, clock=clock, sleep=fake_sleep)
        await limiter.acquire()
        clock.now += 3.0
        assert await limiter.acquire() == 0.0

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(ValueError):
            RateLimiter(-1)


# ======================================================================
# CircuitBreaker
# ======================================================================


class TestCircuitBreaker:
    def test_opens_after_threshold(self) -> None:
        breaker = CircuitBreaker("oracle-a", failure_threshold=3, clock=_FakeClock())
        for _ in range(2):
            breaker.record_failure()
        assert breaker.allow_request() is True
        breaker.record_failure()
        assert breaker.state is CircuitState.OPEN
        assert breaker.allow_request() is False

    def test_success_resets_failure_count(self) -> None:
        breaker = CircuitBreaker("oracle-a", failure_threshold=2, clock=_FakeClock())
        breaker.record_failure()
        breaker.record_success()
        breaker.record_failure()
        assert breaker.state is CircuitState.CLOSED

    def test_half_open_then_closed(self) -> None:
        clock = _FakeClock()
        breaker = CircuitBreaker(
            "oracle-a", failure_threshold=1, reset_timeout=30, half_open_successes=2, clock=clock
        )
        breaker.record_failure()
        clock.now += 30
        assert breaker.allow_request() is True
        assert breaker.state is CircuitState.HALF_OPEN
        breaker.record_success()
        assert breaker.state is CircuitState.HALF_OPEN
        breaker.record_success()
        assert breaker.state is CircuitState.CLOSED

    def test_half_open_failure_reopens(self) -> None:
        clock = _FakeClock()
        breaker = CircuitBreaker("oracle-a", failure_threshold=1, reset_timeout=10, clock=clock)
        breaker.record_failure()
        clock.now += 10
        breaker.allow_request()
        breaker.record_failure()
        assert breaker.state is CircuitState.OPEN
        assert breaker.allow_request() is False
