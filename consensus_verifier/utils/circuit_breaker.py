"""Per-oracle circuit breaker.

Keeps a persistently failing oracle from adding a full timeout to every
run in a batch.  States:

    CLOSED     normal operation
    OPEN       ``failure_threshold`` consecutive failures seen; calls are
               refused until ``reset_timeout`` seconds have passed
    HALF_OPEN  probing; ``half_open_successes`` successes close the
               circuit, any failure re-opens it

A refusal from the oracle counts as a success: the service answered.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable

import structlog

from consensus_verifier.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class CircuitState(str, Enum):  # noqa: UP042
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        reset_timeout: float = 30.0,
        half_open_successes: int = 2,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self._name = name
        self._failure_threshold = failure_threshold
        self._reset_timeout = reset_timeout
        self._half_open_successes = half_open_successes
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0
        self._trial_successes = 0

    @property
    def state(self) -> CircuitState:
        return self._state

    def allow_request(self) -> bool:
        if self._state is CircuitState.CLOSED:
            return True
        if self._state is CircuitState.OPEN:
            if self._clock() - self._opened_at >= self._reset_timeout:
                self._state = CircuitState.HALF_OPEN
                self._trial_successes = 0
                _logger.info("circuit_half_open", oracle=self._name)
                return True
            return False
        return True

    def record_success(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            self._trial_successes += 1
            if self._trial_successes >= self._half_open_successes:
                self._state = CircuitState.CLOSED
                self._failures = 0
                _logger.info("circuit_closed", oracle=self._name)
            return
        self._failures = 0

    def record_failure(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            self._trip()
            return
        self._failures += 1
        if self._state is CircuitState.CLOSED and self._failures >= self._failure_threshold:
            self._trip()

    def _trip(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        _logger.warning("circuit_opened", oracle=self._name, failures=self._failures)
