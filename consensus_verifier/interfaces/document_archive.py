"""Abstract base class for the raw oracle document archive.

Stores each oracle's verbatim reply as provenance.  Writes are
best-effort: the verification service logs archive failures and carries
on, so verification results never depend on the archive.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# Concrete implementation: SQLiteDocumentArchive (consensus_verifier/providers/archive/)
class IDocumentArchive(ABC):
    @abstractmethod
    async def initialize(self) -> None:
        """Create storage if needed."""

    @abstractmethod
    async def append(
        self,
        subject_id: str,
        oracle_id: str,
        raw_text: str,
        parsed: dict[str, Any] | None = None,
    ) -> None:
        """Archive one raw oracle reply."""

    @abstractmethod
    async def count(self, subject_id: str | None = None) -> int:
        """Number of archived replies, optionally for one subject."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this archive."""
