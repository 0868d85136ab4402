"""Abstract base class for LLM service providers.

Defines the contract for any large-language-model backend used as a
research oracle or as the evidence writer.  Implementations wrap a
vendor SDK (OpenAI-compatible chat completions, Anthropic Messages) and
hide its request/response envelope from the rest of the code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider
# Located in: consensus_verifier/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM text completion."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the actual request.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        consensus_verifier.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return an identifier that is unique per configured model.

        Used as the oracle id, so two oracles on the same vendor but
        different models must return different names, e.g.
        ``"openai:gpt-4o"`` and ``"gateway:google/gemini-2.5-flash"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm credentials are valid."""
