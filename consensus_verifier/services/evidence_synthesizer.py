"""Writes a prose evidence document from a subject's persisted facts.

Only facts already in the fact store at or above ``min_confidence`` are
given to the writer, and the prompt forbids anything beyond them.  When
no fact qualifies, the LLM is not called at all and an
:class:`InsufficientFacts` marker is returned instead.

The generated text is stored as-is; it is not checked back against the
facts it was built from.
"""

from __future__ import annotations

import structlog

from consensus_verifier.config.prompts import SYNTHESIS_SYSTEM_PROMPT, build_synthesis_prompt
from consensus_verifier.interfaces.fact_store import IFactStore
from consensus_verifier.interfaces.llm_provider import ILLMProvider
from consensus_verifier.models.facts import FactFilter
from consensus_verifier.models.verification import (
    EvidenceDocument,
    InsufficientFacts,
    SynthesisMetadata,
)
from consensus_verifier.utils.logging import get_logger


class EvidenceSynthesizer:
    """One-shot, fact-bounded document writer."""

    def __init__(
        self,
        llm_provider: ILLMProvider,
        fact_store: IFactStore,
        min_confidence: float = 0.75,
        max_facts: int = 50,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> None:
        self._llm = llm_provider
        self._fact_store = fact_store
        self._min_confidence = min_confidence
        self._max_facts = max_facts
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def synthesize(
        self,
        subject_id: str,
        subject_display_name: str,
    ) -> EvidenceDocument | InsufficientFacts:
        """Generate and persist an evidence document for one subject.

        Raises
        ------
        StorageError
            If the fact store cannot be read or the document not saved.
        LLMError
            If the writer call fails.
        """
        facts = await self._fact_store.query(
            subject_id,
            FactFilter(min_confidence=self._min_confidence, limit=self._max_facts),
        )
        if not facts:
            self._logger.info(
                "synthesis_skipped",
                subject_id=subject_id,
                reason="insufficient verified facts",
            )
            return InsufficientFacts(subject_id=subject_id)

        claims = [f.claim_text for f in facts]
        content = await self._llm.complete(
            system_prompt=SYNTHESIS_SYSTEM_PROMPT,
            user_prompt=build_synthesis_prompt(subject_display_name, claims),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        document = EvidenceDocument(
            subject_id=subject_id,
            title=f"{subject_display_name} - Verified Profile",
            content=content.strip(),
            metadata=SynthesisMetadata(
                claims_used=len(claims),
                oracle_id=self._llm.get_provider_name(),
            ),
        )
        await self._fact_store.save_document(document)
        self._logger.info(
            "synthesis_complete",
            subject_id=subject_id,
            claims_used=len(claims),
            oracle=document.metadata.oracle_id,
        )
        return document
