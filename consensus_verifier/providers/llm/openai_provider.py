"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
Many services expose the OpenAI chat-completions protocol, so one adapter
covers several oracles by pointing the client at a different base URL:

    - OpenAI itself (``gpt-4o``)
    - the Lovable AI gateway (``google/gemini-2.5-flash``, ``openai/gpt-5-mini``)
    - xAI (``grok-3-mini``)

Each instance is bound to exactly one model, and its provider name
(``"<label>:<model>"``) doubles as the oracle id, so two gateway models
count as two distinct oracles for quorum purposes.
"""

from __future__ import annotations

import openai
import structlog

from consensus_verifier.config.settings import Settings
from consensus_verifier.interfaces.llm_provider import ILLMProvider
from consensus_verifier.utils.errors import LLMError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat-completions API.

    Parameters
    ----------
    settings:
        Application settings; supplies the OpenAI key, model and timeout
        unless overridden below.
    api_key, model, base_url:
        Overrides for gateway/xAI instances.
    label:
        Prefix of the provider name, e.g. ``"openai"`` or ``"gateway"``.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        label: str = "openai",
    ) -> None:
        self._settings = settings
        self._api_key = api_key if api_key is not None else settings.openai_api_key
        self._model = model or settings.openai_model
        self._label = label
        self._timeout_seconds = settings.oracle_timeout_seconds

        client_kwargs: dict = {
            "api_key": self._api_key or "unset",
            "timeout": openai.Timeout(self._timeout_seconds, connect=5.0),
            # Retries would multiply the oracle timeout; the fan-out has its own.
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = openai.AsyncOpenAI(**client_kwargs)

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
        """Generate a text completion via the chat-completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"timed out after {self._timeout_seconds:g}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"rate limited: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(
                message="empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            provider=self.get_provider_name(),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to verify the key without inference cost."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        return f"{self._label}:{self._model}"
