"""LLM provider adapters.

Two concrete implementations of ILLMProvider:
    - OpenAILLMProvider    — OpenAI, and any OpenAI-compatible endpoint
                             (Lovable AI gateway for Gemini/GPT, xAI Grok)
    - AnthropicLLMProvider — Claude via the Messages API

main.py builds one provider per configured model and wraps each in an
LLMOracle.
"""

from consensus_verifier.providers.llm.anthropic_provider import AnthropicLLMProvider
from consensus_verifier.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]
