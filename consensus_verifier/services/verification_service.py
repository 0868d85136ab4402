"""Top-level verification service.

Wires the stages of a verification run together:

    fan-out -> archive raw replies (best-effort) -> normalize each CLAIMS
    response -> quorum aggregation -> upsert accepted facts

and exposes the follow-on operations that work on persisted facts
(evidence synthesis, audit pruning, batch verification, status).

Oracle problems never raise out of here; they only lower
``oracles_responded`` and shrink the accepted set.  A run with zero
accepted facts is a successful, ``unverified`` run.  Only
:class:`ConfigurationError` and :class:`StorageError` (plus
:class:`LLMError` from the single synthesis call) reach the caller.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

import structlog

from consensus_verifier.config.prompts import RESEARCH_PROMPT_CONTRACT
from consensus_verifier.interfaces.document_archive import IDocumentArchive
from consensus_verifier.interfaces.fact_store import IFactStore
from consensus_verifier.models.facts import FactFilter, NormalizedFact, StoredFact
from consensus_verifier.models.oracle import OracleResponse
from consensus_verifier.models.verification import (
    AuditResult,
    BatchResult,
    EvidenceDocument,
    InsufficientFacts,
    StoreStats,
    Subject,
    VerificationRun,
)
from consensus_verifier.services.aggregator import QuorumAggregator
from consensus_verifier.services.evidence_synthesizer import EvidenceSynthesizer
from consensus_verifier.services.fan_out import OracleFanOut
from consensus_verifier.services.normalizer import FactNormalizer
from consensus_verifier.utils.concurrency import RateLimiter
from consensus_verifier.utils.confidence import VerificationLevel
from consensus_verifier.utils.errors import (
    ConfigurationError,
    ConsensusVerifierError,
    StorageError,
)
from consensus_verifier.utils.logging import get_logger


class ConsensusVerifier:
    """Runs multi-oracle verification for subjects and manages their facts.

    All collaborators are injected; ``main.py`` builds the production
    set and tests pass mocks.

    Parameters
    ----------
    fan_out:
        The configured oracles.
    normalizer, aggregator:
        Pure stages; the aggregator carries the consensus policy.
    fact_store:
        Persistence for accepted facts and evidence documents.
    synthesizer:
        Optional; without it :meth:`synthesize_evidence` is unavailable.
    archive:
        Optional raw reply archive.  Failures are logged and ignored.
    audit_min_confidence:
        Facts scoring below this are removed by :meth:`audit_prune`.
    prompt_contract:
        Shared instruction sent to every oracle.
    """

    def __init__(
        self,
        fan_out: OracleFanOut,
        normalizer: FactNormalizer,
        aggregator: QuorumAggregator,
        fact_store: IFactStore,
        synthesizer: EvidenceSynthesizer | None = None,
        archive: IDocumentArchive | None = None,
        audit_min_confidence: float = 0.65,
        prompt_contract: str = RESEARCH_PROMPT_CONTRACT,
    ) -> None:
        self._fan_out = fan_out
        self._normalizer = normalizer
        self._aggregator = aggregator
        self._fact_store = fact_store
        self._synthesizer = synthesizer
        self._archive = archive
        self._audit_min_confidence = audit_min_confidence
        self._prompt_contract = prompt_contract
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # -- Public API -----------------------------------------------------------

    async def run_verification(self, subject_id: str, subject_display_name: str) -> VerificationRun:
        """Query every oracle about one subject and persist what they agree on.

        Raises
        ------
        StorageError
            If an accepted fact cannot be written.  Facts upserted before
            the failure stay in the store.
        """
        subject = Subject(subject_id=subject_id, display_name=subject_display_name)
        started_at = datetime.now(tz=timezone.utc)
        self._logger.info(
            "verification_started",
            subject_id=subject.subject_id,
            subject=subject.display_name,
            oracles=len(self._fan_out),
        )

        responses = await self._fan_out.dispatch(subject.display_name, self._prompt_contract)
        await self._archive_responses(subject.subject_id, responses)

        candidates: list[NormalizedFact] = []
        for response in responses:
            if response.responded and response.parsed is not None:
                candidates.extend(self._normalizer.normalize(response.parsed, response.oracle_id))

        accepted = self._aggregator.aggregate(candidates)
        for fact in accepted:
            await self._fact_store.upsert(subject.subject_id, fact)

        run = VerificationRun(
            subject_id=subject.subject_id,
            subject_display_name=subject.display_name,
            oracles_queried=len(responses),
            oracles_responded=sum(1 for r in responses if r.responded),
            oracles_refused=sum(1 for r in responses if r.refused),
            oracles_failed=sum(1 for r in responses if not r.responded and not r.refused),
            accepted_facts=accepted,
            started_at=started_at,
            completed_at=datetime.now(tz=timezone.utc),
        )
        self._logger.info(
            "verification_complete",
            subject_id=run.subject_id,
            responded=run.oracles_responded,
            refused=run.oracles_refused,
            failed=run.oracles_failed,
            candidates=len(candidates),
            accepted=len(run.accepted_facts),
            level=run.verification_level.value,
        )
        return run

    async def synthesize_evidence(
        self,
        subject_id: str,
        subject_display_name: str,
    ) -> EvidenceDocument | InsufficientFacts:
        """Write an evidence document from the subject's persisted facts."""
        if self._synthesizer is None:
            raise ConfigurationError(message="no synthesis provider configured")
        return await self._synthesizer.synthesize(subject_id, subject_display_name)

    async def audit_prune(self) -> AuditResult:
        """Delete low-confidence and unverified facts.  Safe to repeat."""
        deleted = await self._fact_store.delete_where(
            below_confidence=self._audit_min_confidence,
            statuses=(VerificationLevel.UNVERIFIED.value,),
        )
        remaining = await self._fact_store.count()
        self._logger.info("audit_prune_complete", deleted=deleted, remaining=remaining)
        return AuditResult(deleted_count=deleted, remaining_fact_count=remaining)

    async def verify_batch(
        self,
        subjects: Sequence[Subject],
        rate_limiter: RateLimiter | None = None,
        force: bool = False,
    ) -> BatchResult:
        """Verify several subjects one after another.

        Subjects that already have stored facts are skipped unless
        *force* is set.  The rate limiter spaces out the runs; each run
        is still fully concurrent across oracles.  A storage failure on
        one subject is recorded in ``failed`` and the batch moves on.
        """
        skipped: list[str] = []
        if not force:
            existing = await self._fact_store.subjects_with_facts(s.subject_id for s in subjects)
            skipped = [s.subject_id for s in subjects if s.subject_id in existing]

        runs: list[VerificationRun] = []
        failed: list[str] = []
        for subject in subjects:
            if subject.subject_id in skipped:
                continue
            if rate_limiter is not None:
                await rate_limiter.acquire()
            try:
                runs.append(await self.run_verification(subject.subject_id, subject.display_name))
            except StorageError as exc:
                self._logger.error(
                    "batch_subject_failed",
                    subject_id=subject.subject_id,
                    error=str(exc),
                )
                failed.append(subject.subject_id)

        self._logger.info(
            "batch_complete",
            processed=len(runs),
            skipped=len(skipped),
            failed=len(failed),
        )
        return BatchResult(runs=runs, skipped=skipped, failed=failed)

    async def full_pipeline(
        self,
        subject_id: str,
        subject_display_name: str,
    ) -> tuple[VerificationRun, EvidenceDocument | InsufficientFacts]:
        """Verify a subject, then synthesize its evidence document."""
        run = await self.run_verification(subject_id, subject_display_name)
        evidence = await self.synthesize_evidence(subject_id, subject_display_name)
        return run, evidence

    async def get_facts(self, subject_id: str, min_confidence: float = 0.0) -> list[StoredFact]:
        """Read back a subject's stored facts, highest confidence first."""
        return await self._fact_store.query(subject_id, FactFilter(min_confidence=min_confidence))

    async def status(self) -> StoreStats:
        """Aggregate counts across the fact store and the raw archive."""
        stats = await self._fact_store.stats()
        archived = 0
        if self._archive is not None:
            try:
                archived = await self._archive.count()
            except ConsensusVerifierError as exc:
                self._logger.warning("archive_count_failed", error=str(exc))
        return stats.model_copy(
            update={
                "archived_responses": archived,
                "extra": {"oracles": self._fan_out.oracle_ids, "quorum": self._aggregator.policy.quorum},
            }
        )

    # -- Private helpers ------------------------------------------------------

    async def _archive_responses(self, subject_id: str, responses: list[OracleResponse]) -> None:
        if self._archive is None:
            return
        for response in responses:
            if not response.raw_text:
                continue
            try:
                await self._archive.append(
                    subject_id, response.oracle_id, response.raw_text, response.parsed
                )
            except Exception as exc:  # noqa: BLE001
                self._logger.warning(
                    "archive_append_failed",
                    subject_id=subject_id,
                    oracle=response.oracle_id,
                    error=str(exc),
                )
