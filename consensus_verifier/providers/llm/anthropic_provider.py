"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`.

Differences from the OpenAI adapter:
    - Messages API instead of chat.completions
    - The system prompt is a top-level parameter, not a message
    - Response content is a list of blocks; text blocks are joined
"""

from __future__ import annotations

import anthropic
import structlog

from consensus_verifier.config.settings import Settings
from consensus_verifier.interfaces.llm_provider import ILLMProvider
from consensus_verifier.utils.errors import LLMError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude API."""

    def __init__(self, settings: Settings, *, model: str | None = None) -> None:
        self._settings = settings
        self._api_key = settings.anthropic_api_key
        self._model = model or settings.anthropic_model
        self._timeout_seconds = settings.oracle_timeout_seconds
        self._client = anthropic.AsyncAnthropic(
            api_key=self._api_key or "unset",
            timeout=self._timeout_seconds,
            max_retries=0,
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion via the Anthropic Messages API."""
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
            )
        except anthropic.APITimeoutError as exc:
            raise LLMError(
                message=f"timed out after {self._timeout_seconds:g}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.RateLimitError as exc:
            raise RateLimitError(
                message=f"rate limited: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIError as exc:
            raise LLMError(
                message=f"API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise LLMError(
                message="no text content in response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_completion",
            provider=self.get_provider_name(),
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Try a minimal completion to verify the API key works."""
        if not self.is_available():
            return False
        try:
            await self._client.messages.create(
                model=self._model,
                max_tokens=10,
                messages=[{"role": "user", "content": "hi"}],
            )
            return True
        except anthropic.APIError:
            return False

    def get_provider_name(self) -> str:
        return f"anthropic:{self._model}"
