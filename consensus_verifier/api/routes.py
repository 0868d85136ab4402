"""FastAPI routes for the consensus verifier.

Service dependencies are resolved from ``app.state`` (populated by
``main.create_app``) via ``Depends`` using the ``Annotated`` pattern.

    Endpoint                                  Method  Description
    ───────────────────────────────────────────────────────────────────
    /api/v1/subjects/{sid}/verify             POST    Fan out, persist consensus facts
    /api/v1/subjects/{sid}/synthesize         POST    Evidence document from stored facts
    /api/v1/subjects/{sid}/pipeline           POST    Verify, then synthesize
    /api/v1/subjects/{sid}/facts              GET     Stored facts, highest confidence first
    /api/v1/verify/batch                      POST    Sequential, rate-limited verification
    /api/v1/audit/prune                       POST    Delete low-confidence/unverified facts
    /api/v1/status                            GET     Store and archive counts
    /api/v1/health                            GET     Health check + configured oracles
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request

from consensus_verifier import __version__
from consensus_verifier.api.schemas import (
    BatchVerifyRequest,
    BatchVerifyResponse,
    ErrorResponse,
    FactsResponse,
    HealthResponse,
    PipelineResponse,
    StatusResponse,
    SynthesisResponse,
    VerifyRequest,
)
from consensus_verifier.config.settings import Settings
from consensus_verifier.models.verification import (
    AuditResult,
    EvidenceDocument,
    InsufficientFacts,
    Subject,
    VerificationRun,
)
from consensus_verifier.services.verification_service import ConsensusVerifier
from consensus_verifier.utils.concurrency import RateLimiter
from consensus_verifier.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependency injection helpers, resolved from app.state
# ---------------------------------------------------------------------------


def _get_verifier(request: Request) -> ConsensusVerifier:
    return request.app.state.verifier


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


VerifierDep = Annotated[ConsensusVerifier, Depends(_get_verifier)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


def _synthesis_response(
    subject_id: str, result: EvidenceDocument | InsufficientFacts
) -> SynthesisResponse:
    if isinstance(result, InsufficientFacts):
        return SynthesisResponse(subject_id=subject_id, insufficient=result)
    return SynthesisResponse(subject_id=subject_id, document=result)


# ---------------------------------------------------------------------------
# Subjects
# ---------------------------------------------------------------------------


@router.post(
    "/subjects/{subject_id}/verify",
    response_model=VerificationRun,
    responses={500: {"model": ErrorResponse}},
    summary="Verify a subject against all configured oracles",
)
async def verify_subject(
    subject_id: str,
    body: VerifyRequest,
    verifier: VerifierDep,
) -> VerificationRun:
    """Run one verification; zero accepted facts is still a 200."""
    return await verifier.run_verification(subject_id, body.display_name)


@router.post(
    "/subjects/{subject_id}/synthesize",
    response_model=SynthesisResponse,
    responses={500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Write an evidence document from stored facts",
)
async def synthesize_subject(
    subject_id: str,
    body: VerifyRequest,
    verifier: VerifierDep,
) -> SynthesisResponse:
    result = await verifier.synthesize_evidence(subject_id, body.display_name)
    return _synthesis_response(subject_id, result)


@router.post(
    "/subjects/{subject_id}/pipeline",
    response_model=PipelineResponse,
    responses={500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Verify a subject, then synthesize its evidence document",
)
async def run_pipeline(
    subject_id: str,
    body: VerifyRequest,
    verifier: VerifierDep,
) -> PipelineResponse:
    run, evidence = await verifier.full_pipeline(subject_id, body.display_name)
    return PipelineResponse(run=run, synthesis=_synthesis_response(subject_id, evidence))


@router.get(
    "/subjects/{subject_id}/facts",
    response_model=FactsResponse,
    summary="List a subject's stored facts",
)
async def list_facts(
    subject_id: str,
    verifier: VerifierDep,
    min_confidence: Annotated[float, Query(ge=0.0, le=1.0)] = 0.0,
) -> FactsResponse:
    facts = await verifier.get_facts(subject_id, min_confidence=min_confidence)
    return FactsResponse(subject_id=subject_id, total=len(facts), facts=facts)


# ---------------------------------------------------------------------------
# Batch / maintenance
# ---------------------------------------------------------------------------


@router.post(
    "/verify/batch",
    response_model=BatchVerifyResponse,
    summary="Verify several subjects one after another",
)
async def verify_batch(
    body: BatchVerifyRequest,
    verifier: VerifierDep,
    settings: SettingsDep,
) -> BatchVerifyResponse:
    delay = body.delay_seconds if body.delay_seconds is not None else settings.batch_delay_seconds
    subjects = [Subject(subject_id=s.subject_id, display_name=s.display_name) for s in body.subjects]
    result = await verifier.verify_batch(subjects, rate_limiter=RateLimiter(delay), force=body.force)
    return BatchVerifyResponse(runs=result.runs, skipped=result.skipped, failed=result.failed)


@router.post(
    "/audit/prune",
    response_model=AuditResult,
    summary="Delete low-confidence and unverified facts",
)
async def audit_prune(verifier: VerifierDep) -> AuditResult:
    return await verifier.audit_prune()


@router.get("/status", response_model=StatusResponse, summary="Store statistics")
async def get_status(request: Request, verifier: VerifierDep) -> StatusResponse:
    return StatusResponse(
        stats=await verifier.status(),
        config=getattr(request.app.state, "config", {}),
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check(request: Request) -> HealthResponse:
    """Healthy with at least two oracles and enough of them to reach the quorum."""
    oracle_ids: list[str] = list(getattr(request.app.state, "oracle_ids", []))
    synthesis_provider = getattr(request.app.state, "synthesis_provider", None)
    settings = getattr(request.app.state, "settings", None)
    quorum = settings.quorum if settings is not None else 2
    status = "healthy" if len(oracle_ids) >= max(quorum, 2) else "degraded"
    return HealthResponse(
        status=status,
        version=__version__,
        oracles=oracle_ids,
        synthesis_provider=synthesis_provider,
    )
