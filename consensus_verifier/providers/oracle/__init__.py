"""Oracle adapters: LLMOracle wraps any ILLMProvider as an IOracle."""

from consensus_verifier.providers.oracle.llm_oracle import LLMOracle, is_refusal

__all__ = ["LLMOracle", "is_refusal"]
