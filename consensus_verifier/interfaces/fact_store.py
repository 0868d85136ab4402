"""Abstract base class for the fact store.

The store persists accepted facts keyed by ``(subject_id, normalized_key)``
and the evidence documents synthesized from them.  Any backend with keyed
upsert and predicate filtering satisfies the contract; relational
semantics are not required.

Every method raises :class:`StorageError` on backend failure.  Callers do
not retry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from consensus_verifier.models.facts import AcceptedFact, FactFilter, StoredFact
from consensus_verifier.models.verification import EvidenceDocument, StoreStats


# Concrete implementation: SQLiteFactStore (consensus_verifier/providers/fact_store/)
class IFactStore(ABC):
    """Contract for accepted-fact persistence.  All operations are async."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    async def upsert(self, subject_id: str, fact: AcceptedFact) -> StoredFact:
        """Insert or replace the fact for ``(subject_id, fact.normalized_key)``.

        Each upsert is independent; there is no cross-fact transaction.
        """

    @abstractmethod
    async def query(self, subject_id: str, fact_filter: FactFilter | None = None) -> list[StoredFact]:
        """Return a subject's facts, highest confidence first."""

    @abstractmethod
    async def delete_where(
        self,
        below_confidence: float | None = None,
        statuses: Iterable[str] = (),
    ) -> int:
        """Delete facts with confidence below *below_confidence* OR status in *statuses*.

        Returns
        -------
        int
            Number of rows deleted.
        """

    @abstractmethod
    async def count(self, subject_id: str | None = None) -> int:
        """Count stored facts, optionally for one subject."""

    @abstractmethod
    async def subjects_with_facts(self, subject_ids: Iterable[str]) -> set[str]:
        """Return the subset of *subject_ids* that already have facts."""

    @abstractmethod
    async def save_document(self, document: EvidenceDocument) -> int:
        """Persist a synthesized evidence document; returns its row id."""

    @abstractmethod
    async def stats(self) -> StoreStats:
        """Return aggregate counts for status reporting."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
