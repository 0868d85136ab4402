"""Domain models — re-exports every public model class.

Submodules by concern:
    - facts.py         — FactType, NormalizedFact, AcceptedFact, StoredFact
    - oracle.py        — OracleQuery and the tagged OracleResponse variant
    - verification.py  — Subject, ConsensusPolicy, VerificationRun and the
                         synthesis / audit / batch outputs
"""

from __future__ import annotations

from consensus_verifier.models.facts import (
    AcceptedFact,
    FactFilter,
    FactType,
    NormalizedFact,
    StoredFact,
    VerificationLevel,
)
from consensus_verifier.models.oracle import (
    FailureKind,
    OracleQuery,
    OracleResponse,
    ResponseStatus,
)
from consensus_verifier.models.verification import (
    AuditResult,
    BatchResult,
    ConsensusPolicy,
    EvidenceDocument,
    InsufficientFacts,
    StoreStats,
    Subject,
    SynthesisMetadata,
    VerificationRun,
)

__all__ = [
    "AcceptedFact",
    "AuditResult",
    "BatchResult",
    "ConsensusPolicy",
    "EvidenceDocument",
    "FactFilter",
    "FactType",
    "FailureKind",
    "InsufficientFacts",
    "NormalizedFact",
    "OracleQuery",
    "OracleResponse",
    "ResponseStatus",
    "StoreStats",
    "StoredFact",
    "Subject",
    "SynthesisMetadata",
    "VerificationLevel",
    "VerificationRun",
]
