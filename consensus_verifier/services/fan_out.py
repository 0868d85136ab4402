"""Concurrent dispatch of one research question to every oracle.

All oracle calls are started together and joined with
``asyncio.gather(return_exceptions=True)`` so one slow or broken oracle
never cancels the others.  Each call carries its own timeout.  Whatever
happens, the caller gets exactly one :class:`OracleResponse` per oracle,
in oracle order.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from consensus_verifier.interfaces.oracle import IOracle
from consensus_verifier.models.oracle import FailureKind, OracleQuery, OracleResponse
from consensus_verifier.utils.concurrency import gather_settled
from consensus_verifier.utils.errors import ConfigurationError
from consensus_verifier.utils.logging import get_logger


class OracleFanOut:
    """Queries a fixed set of oracles in parallel.

    Parameters
    ----------
    oracles:
        The oracles to consult.  Must be non-empty and have distinct ids,
        otherwise quorum counting would be meaningless.
    timeout_seconds:
        Per-oracle bound; a call still running after this is reported as
        an ERROR response with ``failure_kind=timeout``.
    """

    def __init__(self, oracles: Sequence[IOracle], timeout_seconds: float = 25.0) -> None:
        if not oracles:
            raise ConfigurationError(message="no oracles configured")
        ids = [o.oracle_id for o in oracles]
        if len(set(ids)) != len(ids):
            raise ConfigurationError(message=f"duplicate oracle ids: {sorted(ids)}")
        if timeout_seconds <= 0:
            raise ConfigurationError(message="oracle timeout must be positive")
        self._oracles = list(oracles)
        self._timeout = timeout_seconds
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def oracle_ids(self) -> list[str]:
        return [o.oracle_id for o in self._oracles]

    def __len__(self) -> int:
        return len(self._oracles)

    async def dispatch(self, subject_display_name: str, prompt_contract: str) -> list[OracleResponse]:
        """Send the same query to every oracle and collect all outcomes."""
        queries = [
            OracleQuery(
                subject_display_name=subject_display_name,
                prompt_contract=prompt_contract,
                oracle_id=o.oracle_id,
            )
            for o in self._oracles
        ]
        results = await gather_settled(
            [
                o.query(q.subject_display_name, q.prompt_contract)
                for o, q in zip(self._oracles, queries)
            ],
            timeout=self._timeout,
        )

        responses: list[OracleResponse] = []
        for query, result in zip(queries, results):
            response = self._settle(query.oracle_id, result)
            self._log_outcome(subject_display_name, response)
            responses.append(response)
        return responses

    # -- Private helpers ------------------------------------------------------

    def _settle(self, oracle_id: str, result: object) -> OracleResponse:
        if isinstance(result, OracleResponse):
            return result
        if isinstance(result, (asyncio.TimeoutError, TimeoutError)):
            return OracleResponse.failure(
                oracle_id,
                f"no response within {self._timeout:g}s",
                FailureKind.TIMEOUT,
                latency_ms=self._timeout * 1000,
            )
        if isinstance(result, BaseException):
            return OracleResponse.failure(
                oracle_id,
                f"{type(result).__name__}: {result}",
                FailureKind.TRANSPORT,
            )
        return OracleResponse.failure(
            oracle_id,
            f"unexpected result type {type(result).__name__}",
            FailureKind.TRANSPORT,
        )

    def _log_outcome(self, subject: str, response: OracleResponse) -> None:
        if response.refused:
            self._logger.info(
                "oracle_refused",
                subject=subject,
                oracle=response.oracle_id,
                latency_ms=response.latency_ms,
            )
        elif not response.responded:
            self._logger.warning(
                "oracle_failed",
                subject=subject,
                oracle=response.oracle_id,
                failure_kind=response.failure_kind.value if response.failure_kind else None,
                error=response.error,
            )
        else:
            self._logger.debug(
                "oracle_responded",
                subject=subject,
                oracle=response.oracle_id,
                latency_ms=response.latency_ms,
            )
