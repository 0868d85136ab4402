"""Interfaces for every external collaborator.

Business logic talks to these abstract base classes only; concrete
adapters live in ``consensus_verifier/providers/`` and are wired together
in ``consensus_verifier/main.py``.  Tests inject mocks built with
``MagicMock(spec=...)``.

    Interface          ->  Concrete implementations
    ─────────────────────────────────────────────────────────
    ILLMProvider       ->  OpenAILLMProvider, AnthropicLLMProvider
    IOracle            ->  LLMOracle
    IFactStore         ->  SQLiteFactStore
    IDocumentArchive   ->  SQLiteDocumentArchive
"""

from consensus_verifier.interfaces.document_archive import IDocumentArchive
from consensus_verifier.interfaces.fact_store import IFactStore
from consensus_verifier.interfaces.llm_provider import ILLMProvider
from consensus_verifier.interfaces.oracle import IOracle

__all__ = [
    "IDocumentArchive",
    "IFactStore",
    "ILLMProvider",
    "IOracle",
]
