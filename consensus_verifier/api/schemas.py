"""Pydantic request/response schemas for the verification API.

Domain models (VerificationRun, StoredFact, EvidenceDocument, ...) are
returned directly where their shape is already the public contract; the
classes below only cover request bodies and response envelopes that have
no domain counterpart.

Convention: request schemas end with "Request", response schemas end
with "Response".
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from consensus_verifier.models.facts import StoredFact
from consensus_verifier.models.verification import (
    EvidenceDocument,
    InsufficientFacts,
    StoreStats,
    VerificationRun,
)


class VerifyRequest(BaseModel):
    """Body for single-subject verification, synthesis and pipeline calls."""

    display_name: str = Field(..., min_length=1, max_length=300)


class BatchSubject(BaseModel):
    subject_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1, max_length=300)


class BatchVerifyRequest(BaseModel):
    """Subjects to verify sequentially with a fixed delay between them."""

    subjects: list[BatchSubject] = Field(..., min_length=1)
    force: bool = Field(default=False, description="Re-verify subjects that already have facts")
    delay_seconds: float | None = Field(default=None, ge=0.0, le=60.0)


class BatchVerifyResponse(BaseModel):
    runs: list[VerificationRun]
    skipped: list[str]
    failed: list[str]


class SynthesisResponse(BaseModel):
    """Either a document or an insufficient-facts marker, never both."""

    subject_id: str
    document: EvidenceDocument | None = None
    insufficient: InsufficientFacts | None = None


class PipelineResponse(BaseModel):
    run: VerificationRun
    synthesis: SynthesisResponse


class FactsResponse(BaseModel):
    subject_id: str
    total: int
    facts: list[StoredFact]


class StatusResponse(BaseModel):
    stats: StoreStats
    # Resolved YAML + environment configuration.
    config: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    oracles: list[str]
    synthesis_provider: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
