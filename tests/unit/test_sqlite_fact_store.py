"""Unit tests for the SQLite fact store and raw document archive."""

from __future__ import annotations

from pathlib import Path

import pytest

from consensus_verifier.models.facts import AcceptedFact, FactFilter, FactType, VerificationLevel
from consensus_verifier.models.verification import EvidenceDocument, SynthesisMetadata
from consensus_verifier.providers.archive.sqlite_document_archive import SQLiteDocumentArchive
from consensus_verifier.providers.fact_store.sqlite_fact_store import SQLiteFactStore
from consensus_verifier.utils.errors import StorageError


def _fact(
    key: str,
    score: float,
    status: VerificationLevel = VerificationLevel.VERIFIED,
    fact_type: FactType = FactType.LABEL,
    oracles: frozenset[str] = frozenset({"a", "b"}),
) -> AcceptedFact:
    value = key.split(":", 1)[1]
    return AcceptedFact(
        fact_type=fact_type,
        normalized_key=key,
        display_value={"value": value.title()},
        contributing_oracles=oracles,
        confidence_score=score,
        claim_text=f"Released music on {value.title()}",
        verification_status=status,
    )


# ======================================================================
# Facts
# ======================================================================


class TestUpsertAndQuery:
    @pytest.mark.asyncio
    async def test_upsert_round_trip(self, fact_store: SQLiteFactStore) -> None:
        stored = await fact_store.upsert("jeff-mills", _fact("label:axis", 0.9))
        assert stored.subject_id == "jeff-mills"
        assert stored.normalized_key == "label:axis"
        assert stored.display_value == {"value": "Axis"}
        assert stored.contributing_oracles == ["a", "b"]
        assert stored.verification_status is VerificationLevel.VERIFIED

    @pytest.mark.asyncio
    async def test_upsert_replaces_same_key(self, fact_store: SQLiteFactStore) -> None:
        await fact_store.upsert("jeff-mills", _fact("label:axis", 0.9))
        await fact_store.upsert(
            "jeff-mills", _fact("label:axis", 0.95, oracles=frozenset({"a", "b", "c"}))
        )
        facts = await fact_store.query("jeff-mills")
        assert len(facts) == 1
        assert facts[0].confidence_score == pytest.approx(0.95)
        assert facts[0].contributing_oracles == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_same_key_for_different_subjects(self, fact_store: SQLiteFactStore) -> None:
        await fact_store.upsert("jeff-mills", _fact("label:tresor", 0.9))
        await fact_store.upsert("blake-baxter", _fact("label:tresor", 0.9))
        assert await fact_store.count() == 2
        assert await fact_store.count("jeff-mills") == 1

    @pytest.mark.asyncio
    async def test_query_filter_and_order(self, fact_store: SQLiteFactStore) -> None:
        await fact_store.upsert("s", _fact("label:axis", 0.9))
        await fact_store.upsert("s", _fact("label:tresor", 0.95))
        await fact_store.upsert(
            "s", _fact("style:techno", 0.7, VerificationLevel.PARTIALLY_VERIFIED, FactType.STYLE)
        )

        facts = await fact_store.query("s", FactFilter(min_confidence=0.75))
        assert [f.normalized_key for f in facts] == ["label:tresor", "label:axis"]

        styles = await fact_store.query("s", FactFilter(fact_types=[FactType.STYLE]))
        assert [f.normalized_key for f in styles] == ["style:techno"]

        top = await fact_store.query("s", FactFilter(limit=1))
        assert [f.normalized_key for f in top] == ["label:tresor"]

    @pytest.mark.asyncio
    async def test_subjects_with_facts(self, fact_store: SQLiteFactStore) -> None:
        await fact_store.upsert("jeff-mills", _fact("label:axis", 0.9))
        assert await fact_store.subjects_with_facts(["jeff-mills", "dvs1"]) == {"jeff-mills"}
        assert await fact_store.subjects_with_facts([]) == set()


class TestDeleteWhere:
    @pytest.mark.asyncio
    async def test_deletes_low_confidence_or_unverified(self, fact_store: SQLiteFactStore) -> None:
        await fact_store.upsert("s", _fact("label:axis", 0.9))
        await fact_store.upsert("s", _fact("label:low", 0.6, VerificationLevel.UNVERIFIED))
        await fact_store.upsert("s", _fact("label:flagged", 0.8, VerificationLevel.UNVERIFIED))

        deleted = await fact_store.delete_where(below_confidence=0.65, statuses=["unverified"])
        assert deleted == 2
        assert [f.normalized_key for f in await fact_store.query("s")] == ["label:axis"]

    @pytest.mark.asyncio
    async def test_idempotent(self, fact_store: SQLiteFactStore) -> None:
        await fact_store.upsert("s", _fact("label:low", 0.6, VerificationLevel.UNVERIFIED))
        assert await fact_store.delete_where(below_confidence=0.65) == 1
        assert await fact_store.delete_where(below_confidence=0.65) == 0

    @pytest.mark.asyncio
    async def test_no_predicate_deletes_nothing(self, fact_store: SQLiteFactStore) -> None:
        await fact_store.upsert("s", _fact("label:axis", 0.9))
        assert await fact_store.delete_where() == 0
        assert await fact_store.count() == 1


class TestDocumentsAndStats:
    @pytest.mark.asyncio
    async def test_save_document_and_stats(self, fact_store: SQLiteFactStore) -> None:
        await fact_store.upsert("s", _fact("label:axis", 0.9))
        await fact_store.upsert(
            "s", _fact("label:tresor", 0.8, VerificationLevel.PARTIALLY_VERIFIED)
        )
        doc_id = await fact_store.save_document(
            EvidenceDocument(
                subject_id="s",
                title="S - Verified Profile",
                content="Text.",
                metadata=SynthesisMetadata(claims_used=2, oracle_id="mock:writer"),
            )
        )
        assert doc_id >= 1

        stats = await fact_store.stats()
        assert stats.total_subjects == 1
        assert stats.total_facts == 2
        assert stats.by_status == {"verified": 1, "partially_verified": 1}
        assert stats.documents == 1


class TestStorageErrors:
    @pytest.mark.asyncio
    async def test_missing_table_raises_storage_error(self, tmp_path: Path) -> None:
        store = SQLiteFactStore(db_path=tmp_path / "uninitialized.db")
        with pytest.raises(StorageError) as exc_info:
            await store.count()
        assert exc_info.value.provider_name == "sqlite_fact_store"


# ======================================================================
# Raw document archive
# ======================================================================


class TestDocumentArchive:
    @pytest.mark.asyncio
    async def test_append_and_count(self, document_archive: SQLiteDocumentArchive) -> None:
        await document_archive.append("jeff-mills", "oracle-a", '{"labels": ["Axis"]}', {"labels": ["Axis"]})
        await document_archive.append("jeff-mills", "oracle-b", "not json")
        await document_archive.append("dvs1", "oracle-a", "{}", {})
        assert await document_archive.count() == 3
        assert await document_archive.count("jeff-mills") == 2

    @pytest.mark.asyncio
    async def test_uninitialized_archive_raises(self, tmp_path: Path) -> None:
        archive = SQLiteDocumentArchive(db_path=tmp_path / "nothing.db")
        with pytest.raises(StorageError):
            await archive.append("s", "o", "text")
