"""Oracle request/response models.

``OracleResponse`` is a tagged variant validated at the adapter boundary:

    CLAIMS   -- parsed JSON object available for normalization
    REFUSED  -- the oracle said it is not confident enough (informative,
                contributes no facts, does not count as a responder)
    ERROR    -- transport failure, timeout, open circuit or unparseable
                text; indistinguishable from a refusal for aggregation,
                but logged differently

Downstream code never touches a vendor's raw JSON shape; it only sees
``parsed`` on CLAIMS responses.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ResponseStatus(str, Enum):  # noqa: UP042
    CLAIMS = "claims"
    REFUSED = "refused"
    ERROR = "error"


class FailureKind(str, Enum):  # noqa: UP042
    """Why an ERROR response failed."""

    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    PARSE = "parse"
    CIRCUIT_OPEN = "circuit_open"


class OracleQuery(BaseModel):
    """The immutable request fanned out unchanged to every oracle."""

    model_config = ConfigDict(frozen=True)

    subject_display_name: str = Field(min_length=1)
    prompt_contract: str
    oracle_id: str


class OracleResponse(BaseModel):
    """Result of one oracle call."""

    model_config = ConfigDict(frozen=True)

    oracle_id: str
    status: ResponseStatus
    raw_text: str = ""
    parsed: dict[str, Any] | None = None
    error: str | None = None
    failure_kind: FailureKind | None = None
    latency_ms: float = 0.0

    @model_validator(mode="after")
    def _check_variant(self) -> OracleResponse:
        if self.status is ResponseStatus.CLAIMS and self.parsed is None:
            raise ValueError("CLAIMS responses must carry a parsed object")
        if self.status is ResponseStatus.ERROR and not self.error:
            raise ValueError("ERROR responses must carry an error reason")
        return self

    # -- Constructors for each variant ------------------------------------

    @classmethod
    def with_claims(
        cls, oracle_id: str, raw_text: str, parsed: dict[str, Any], latency_ms: float = 0.0
    ) -> OracleResponse:
        return cls(
            oracle_id=oracle_id,
            status=ResponseStatus.CLAIMS,
            raw_text=raw_text,
            parsed=parsed,
            latency_ms=latency_ms,
        )

    @classmethod
    def refusal(
        cls, oracle_id: str, raw_text: str, parsed: dict[str, Any] | None, latency_ms: float = 0.0
    ) -> OracleResponse:
        return cls(
            oracle_id=oracle_id,
            status=ResponseStatus.REFUSED,
            raw_text=raw_text,
            parsed=parsed,
            latency_ms=latency_ms,
        )

    @classmethod
    def failure(
        cls,
        oracle_id: str,
        error: str,
        kind: FailureKind,
        raw_text: str = "",
        latency_ms: float = 0.0,
    ) -> OracleResponse:
        return cls(
            oracle_id=oracle_id,
            status=ResponseStatus.ERROR,
            raw_text=raw_text,
            error=error,
            failure_kind=kind,
            latency_ms=latency_ms,
        )

    # -- Convenience flags -------------------------------------------------

    @property
    def refused(self) -> bool:
        return self.status is ResponseStatus.REFUSED

    @property
    def responded(self) -> bool:
        """True only for claim-bearing responses (counts toward oraclesResponded)."""
        return self.status is ResponseStatus.CLAIMS
