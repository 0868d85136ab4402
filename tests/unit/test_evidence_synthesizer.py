"""Unit tests for EvidenceSynthesizer."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from consensus_verifier.interfaces.fact_store import IFactStore
from consensus_verifier.interfaces.llm_provider import ILLMProvider
from consensus_verifier.models.facts import FactType, StoredFact, VerificationLevel
from consensus_verifier.models.verification import EvidenceDocument, InsufficientFacts
from consensus_verifier.services.evidence_synthesizer import EvidenceSynthesizer
from consensus_verifier.utils.errors import LLMError


def _stored(key: str, claim: str, score: float = 0.9) -> StoredFact:
    return StoredFact(
        fact_id=1,
        subject_id="jeff-mills",
        fact_type=FactType.LABEL,
        normalized_key=key,
        claim_text=claim,
        confidence_score=score,
        verification_status=VerificationLevel.VERIFIED,
        created_at="2024-01-01T00:00:00Z",
        updated_at="2024-01-01T00:00:00Z",
    )


def _store(facts: list[StoredFact]) -> MagicMock:
    store = MagicMock(spec=IFactStore)
    store.query = AsyncMock(return_value=facts)
    store.save_document = AsyncMock(return_value=1)
    return store


class TestSynthesize:
    @pytest.mark.asyncio
    async def test_no_facts_skips_llm(self, mock_llm_provider: ILLMProvider) -> None:
        store = _store([])
        result = await EvidenceSynthesizer(mock_llm_provider, store).synthesize("jeff-mills", "Jeff Mills")

        assert isinstance(result, InsufficientFacts)
        assert result.insufficient_facts is True
        mock_llm_provider.complete.assert_not_awaited()
        store.save_document.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_queries_with_threshold_and_cap(self, mock_llm_provider: ILLMProvider) -> None:
        store = _store([])
        await EvidenceSynthesizer(
            mock_llm_provider, store, min_confidence=0.75, max_facts=50
        ).synthesize("jeff-mills", "Jeff Mills")
        fact_filter = store.query.await_args.args[1]
        assert fact_filter.min_confidence == 0.75
        assert fact_filter.limit == 50

    @pytest.mark.asyncio
    async def test_prompt_lists_every_fact(self, mock_llm_provider: ILLMProvider) -> None:
        store = _store(
            [
                _stored("label:axis", "Released music on Axis"),
                _stored("birth_year:1963", "Born in 1963"),
            ]
        )
        result = await EvidenceSynthesizer(mock_llm_provider, store).synthesize("jeff-mills", "Jeff Mills")

        user_prompt = mock_llm_provider.complete.await_args.kwargs["user_prompt"]
        assert "- Released music on Axis" in user_prompt
        assert "- Born in 1963" in user_prompt
        assert "do not add outside information" in user_prompt

        assert isinstance(result, EvidenceDocument)
        assert result.metadata.claims_used == 2
        assert result.metadata.policy == "zero-tolerance"
        assert result.metadata.oracle_id == "mock:writer"
        store.save_document.assert_awaited_once_with(result)

    @pytest.mark.asyncio
    async def test_llm_failure_propagates(self, mock_llm_provider: ILLMProvider) -> None:
        mock_llm_provider.complete = AsyncMock(side_effect=LLMError("down"))
        store = _store([_stored("label:axis", "Released music on Axis")])
        with pytest.raises(LLMError):
            await EvidenceSynthesizer(mock_llm_provider, store).synthesize("jeff-mills", "Jeff Mills")
        store.save_document.assert_not_awaited()
