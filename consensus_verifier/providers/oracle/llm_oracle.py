"""Research oracle backed by one LLM provider.

Turns a free-text model reply into the tagged :class:`OracleResponse`:

    provider raises LLMError / RateLimitError  -> ERROR (transport)
    no reply within timeout_seconds            -> ERROR (timeout)
    no JSON object in the reply                 -> ERROR (parse)
    {"confidence_level": "low"} or "error" key  -> REFUSED
    anything else that parsed                   -> CLAIMS

The oracle never raises, with one exception: when the fan-out cancels a
call on its own timeout, the failure is recorded on the circuit breaker
and the cancellation is re-raised.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import structlog

from consensus_verifier.config.prompts import build_subject_prompt
from consensus_verifier.interfaces.llm_provider import ILLMProvider
from consensus_verifier.interfaces.oracle import IOracle
from consensus_verifier.models.oracle import FailureKind, OracleResponse
from consensus_verifier.utils.circuit_breaker import CircuitBreaker
from consensus_verifier.utils.errors import ConsensusVerifierError, ResponseParseError
from consensus_verifier.utils.json_extraction import extract_json_object

logger = structlog.get_logger(logger_name=__name__)


def is_refusal(parsed: dict[str, Any]) -> bool:
    """True when the oracle declared low confidence or reported an error."""
    if "error" in parsed:
        return True
    level = parsed.get("confidence_level")
    return isinstance(level, str) and level.strip().lower() == "low"


class LLMOracle(IOracle):
    """Adapter from :class:`ILLMProvider` to :class:`IOracle`.

    Parameters
    ----------
    provider:
        The LLM backend; its provider name becomes the oracle id.
    temperature:
        Kept low so repeated runs give stable answers.
    max_tokens:
        Completion budget per call.
    circuit_breaker:
        Optional; when open, calls return immediately as ERROR.
    timeout_seconds:
        Own bound on the provider call.  ``None`` leaves it to the fan-out
        and the SDK client.
    """

    def __init__(
        self,
        provider: ILLMProvider,
        temperature: float = 0.1,
        max_tokens: int = 4000,
        circuit_breaker: CircuitBreaker | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._provider = provider
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._breaker = circuit_breaker
        self._timeout = timeout_seconds

    @property
    def oracle_id(self) -> str:
        return self._provider.get_provider_name()

    async def query(self, subject_display_name: str, prompt_contract: str) -> OracleResponse:
        if self._breaker is not None and not self._breaker.allow_request():
            return OracleResponse.failure(
                self.oracle_id, "circuit open", FailureKind.CIRCUIT_OPEN
            )

        start = time.perf_counter()
        try:
            raw_text = await asyncio.wait_for(
                self._provider.complete(
                    system_prompt=prompt_contract,
                    user_prompt=build_subject_prompt(subject_display_name),
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            reason = (
                f"no response within {self._timeout:g}s"
                if self._timeout is not None
                else "provider call timed out"
            )
            return self._call_failure(reason, start, FailureKind.TIMEOUT)
        except asyncio.CancelledError:
            if self._breaker is not None:
                self._breaker.record_failure()
            raise
        except ConsensusVerifierError as exc:
            return self._call_failure(str(exc), start)
        except Exception as exc:  # noqa: BLE001
            logger.exception("oracle_unexpected_error", oracle=self.oracle_id)
            return self._call_failure(f"{type(exc).__name__}: {exc}", start)

        latency_ms = _elapsed_ms(start)
        if self._breaker is not None:
            self._breaker.record_success()

        try:
            parsed = extract_json_object(raw_text, provider_name=self.oracle_id)
        except ResponseParseError as exc:
            return OracleResponse.failure(
                self.oracle_id,
                exc.message,
                FailureKind.PARSE,
                raw_text=raw_text,
                latency_ms=latency_ms,
            )

        if is_refusal(parsed):
            return OracleResponse.refusal(self.oracle_id, raw_text, parsed, latency_ms)
        return OracleResponse.with_claims(self.oracle_id, raw_text, parsed, latency_ms)

    def _call_failure(
        self, reason: str, start: float, kind: FailureKind = FailureKind.TRANSPORT
    ) -> OracleResponse:
        if self._breaker is not None:
            self._breaker.record_failure()
        return OracleResponse.failure(
            self.oracle_id,
            reason,
            kind,
            latency_ms=_elapsed_ms(start),
        )


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
