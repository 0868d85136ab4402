"""Concurrency primitives for oracle fan-out and batch pacing.

Two separate concerns live here and are kept apart on purpose:

1. **gather_settled** -- run awaitables concurrently, each under its own
   timeout, and return every outcome (value, exception or timeout) in
   input order.  This is the join used inside a single verification run:
   all oracle calls are in flight at once and one slow or failing oracle
   never cancels the others.

2. **RateLimiter** -- a fixed inter-request delay for *sequential* work,
   e.g. verifying a batch of subjects one after another without tripping
   vendor rate limits.  It is never used inside a single fan-out.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, TypeVar

import structlog

from consensus_verifier.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def gather_settled(
    coros: list[Awaitable[_T]],
    timeout: float | None = None,
) -> list[_T | BaseException]:
    """Await all *coros* concurrently and collect settled results.

    Parameters
    ----------
    coros:
        Awaitables to run.  All are scheduled before any is awaited.
    timeout:
        Per-awaitable timeout in seconds.  A timed-out entry is returned
        as an :class:`asyncio.TimeoutError` instance.  ``None`` disables it.

    Returns
    -------
    list
        One entry per input, in input order: the result, or the exception
        the awaitable raised.
    """

    async def _bounded(coro: Awaitable[_T]) -> _T:
        if timeout is None:
            return await coro
        return await asyncio.wait_for(coro, timeout=timeout)

    return await asyncio.gather(*(_bounded(c) for c in coros), return_exceptions=True)


class RateLimiter:
    """Enforce a minimum interval between successive :meth:`acquire` calls.

    The first call passes immediately; later calls sleep until
    ``min_interval`` seconds have elapsed since the previous one.  A lock
    serialises callers so concurrent acquirers are spaced out as well.

    Parameters
    ----------
    min_interval:
        Seconds between permits.  ``0`` disables pacing.
    clock, sleep:
        Injectable for tests.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock = asyncio.Lock()

    @property
    def min_interval(self) -> float:
        return self._min_interval

    async def acquire(self) -> float:
        """Wait for the next permit.  Returns the seconds spent waiting."""
        async with self._lock:
            waited = 0.0
            now = self._clock()
            if self._last is not None:
                remaining = self._min_interval - (now - self._last)
                if remaining > 0:
                    _logger.debug("rate_limiter_wait", seconds=round(remaining, 3))
                    await self._sleep(remaining)
                    waited = remaining
                    now = self._clock()
            self._last = now
            return waited
