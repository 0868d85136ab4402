"""Business logic: fan-out, normalization, quorum aggregation, synthesis.

Every service receives its collaborators through the constructor and
only depends on the abstract interfaces, never on a concrete adapter.
"""

from consensus_verifier.services.aggregator import QuorumAggregator, render_claim
from consensus_verifier.services.evidence_synthesizer import EvidenceSynthesizer
from consensus_verifier.services.fan_out import OracleFanOut
from consensus_verifier.services.normalizer import FactNormalizer
from consensus_verifier.services.verification_service import ConsensusVerifier

__all__ = [
    "ConsensusVerifier",
    "EvidenceSynthesizer",
    "FactNormalizer",
    "OracleFanOut",
    "QuorumAggregator",
    "render_claim",
]
