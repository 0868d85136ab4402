"""Run-level models: subjects, policy, verification runs and their outputs.

``VerificationRun`` is the unit returned to callers of
``ConsensusVerifier.run_verification`` and the input to evidence
synthesis.  Its ``verification_level`` is derived, never set by hand.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from consensus_verifier.models.facts import AcceptedFact, VerificationLevel
from consensus_verifier.utils.confidence import (
    DEFAULT_CONFIDENCE_BASE,
    DEFAULT_CONFIDENCE_CAP,
    DEFAULT_CONFIDENCE_STEP,
    verification_level_for,
)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Subject(BaseModel):
    """The entity being researched, e.g. an artist."""

    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(min_length=1)
    display_name: str = Field(min_length=1)


class ConsensusPolicy(BaseModel):
    """Quorum threshold and confidence formula parameters.

    Defaults reproduce ``min(0.95, 0.7 + 0.1 * n)`` with a quorum of 2.
    """

    model_config = ConfigDict(frozen=True)

    quorum: int = Field(default=2, ge=1)
    confidence_base: float = Field(default=DEFAULT_CONFIDENCE_BASE, ge=0.0, lt=1.0)
    confidence_step: float = Field(default=DEFAULT_CONFIDENCE_STEP, gt=0.0, lt=1.0)
    confidence_cap: float = Field(default=DEFAULT_CONFIDENCE_CAP, gt=0.0, lt=1.0)

    @model_validator(mode="after")
    def _check_cap(self) -> ConsensusPolicy:
        if self.confidence_cap < self.confidence_base:
            raise ValueError("confidence_cap must not be below confidence_base")
        return self


class VerificationRun(BaseModel):
    """Aggregate record of one fan-out for one subject."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    subject_display_name: str
    oracles_queried: int = Field(ge=0)
    oracles_responded: int = Field(ge=0)
    oracles_refused: int = Field(default=0, ge=0)
    oracles_failed: int = Field(default=0, ge=0)
    accepted_facts: list[AcceptedFact] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime = Field(default_factory=_utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def verification_level(self) -> VerificationLevel:
        return verification_level_for(self.oracles_responded, len(self.accepted_facts))


class SynthesisMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    claims_used: int = Field(ge=1)
    generated_at: datetime = Field(default_factory=_utcnow)
    policy: Literal["zero-tolerance"] = "zero-tolerance"
    oracle_id: str


class EvidenceDocument(BaseModel):
    """Prose summary constrained to a subject's accepted facts."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    title: str
    content: str
    metadata: SynthesisMetadata


class InsufficientFacts(BaseModel):
    """Returned instead of a document when nothing clears the synthesis bar."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    insufficient_facts: Literal[True] = True
    reason: str = "insufficient verified facts"


class AuditResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    deleted_count: int = Field(ge=0)
    remaining_fact_count: int = Field(ge=0)


class BatchResult(BaseModel):
    """Outcome of verifying several subjects one after another."""

    model_config = ConfigDict(frozen=True)

    runs: list[VerificationRun] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class StoreStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_subjects: int = 0
    total_facts: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    documents: int = 0
    archived_responses: int = 0
    extra: dict[str, Any] = Field(default_factory=dict)
