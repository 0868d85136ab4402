"""Utility modules for the consensus verifier.

- **confidence** -- agreement-based confidence formula and tier mapping.
- **errors** -- exception hierarchy rooted at ConsensusVerifierError.
- **json_extraction** -- best-effort recovery of a JSON object from
  prose-wrapped model output.
- **text_normalizer** -- exact canonicalization rules for fact keys.
- **concurrency** -- settled fan-out with per-call timeouts, and a rate
  limiter for sequential batches.
- **circuit_breaker** -- per-oracle fail-fast after repeated failures.
- **logging** -- structlog setup (console in development, JSON in production).
"""

from consensus_verifier.utils.circuit_breaker import CircuitBreaker, CircuitState
from consensus_verifier.utils.concurrency import RateLimiter, gather_settled
from consensus_verifier.utils.confidence import (
    VerificationLevel,
    agreement_confidence,
    fact_status_for,
    verification_level_for,
)
from consensus_verifier.utils.errors import (
    ConfigurationError,
    ConsensusVerifierError,
    LLMError,
    RateLimitError,
    ResponseParseError,
    StorageError,
)
from consensus_verifier.utils.json_extraction import extract_json_object
from consensus_verifier.utils.logging import configure_logging, get_logger
from consensus_verifier.utils.text_normalizer import normalize_text, normalize_year

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "ConfigurationError",
    "ConsensusVerifierError",
    "LLMError",
    "RateLimitError",
    "RateLimiter",
    "ResponseParseError",
    "StorageError",
    "VerificationLevel",
    "agreement_confidence",
    "configure_logging",
    "extract_json_object",
    "fact_status_for",
    "gather_settled",
    "get_logger",
    "normalize_text",
    "normalize_year",
    "verification_level_for",
]
