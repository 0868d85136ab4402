"""Unit tests for LLM provider adapters: OpenAI-compatible and Anthropic."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest

from consensus_verifier.config.settings import Settings
from consensus_verifier.utils.errors import LLMError, RateLimitError
from tests.conftest import make_settings

_OPENAI_URL = "https://api.openai.com/v1/chat/completions"
_ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"


def _openai_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=100)
    return response


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path, openai_api_key="sk-test", anthropic_api_key="test-anthropic")


# ======================================================================
# OpenAI-compatible provider
# ======================================================================


class TestOpenAILLMProvider:
    def test_provider_name_includes_label_and_model(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(settings).get_provider_name() == "openai:gpt-4o"
        gateway = OpenAILLMProvider(
            settings,
            api_key="gw",
            model="google/gemini-2.5-flash",
            base_url="https://ai.gateway.lovable.dev/v1",
            label="gateway",
        )
        assert gateway.get_provider_name() == "gateway:google/gemini-2.5-flash"

    def test_is_available(self, settings: Settings, tmp_path: Path) -> None:
        from consensus_verifier.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(settings).is_available() is True
        assert OpenAILLMProvider(make_settings(tmp_path)).is_available() is False

    def test_client_built_without_retries(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.openai_provider import OpenAILLMProvider

        with patch("consensus_verifier.providers.llm.openai_provider.openai.AsyncOpenAI") as ctor:
            OpenAILLMProvider(settings, base_url="https://api.x.ai/v1", label="xai")
        kwargs = ctor.call_args.kwargs
        assert kwargs["max_retries"] == 0
        assert kwargs["base_url"] == "https://api.x.ai/v1"

    @pytest.mark.asyncio
    async def test_complete_success(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_openai_response('{"a": 1}'))

        with patch(
            "consensus_verifier.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAILLMProvider(settings)
            result = await provider.complete("system prompt", "user prompt", temperature=0.1)

        assert result == '{"a": 1}'
        call = mock_client.chat.completions.create.await_args.kwargs
        assert call["messages"][0] == {"role": "system", "content": "system prompt"}
        assert call["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_empty_content_raises(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_openai_response(None))

        with patch(
            "consensus_verifier.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(LLMError, match="empty"):
                await provider.complete("s", "u")

    @pytest.mark.asyncio
    async def test_timeout_wrapped(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APITimeoutError(request=httpx.Request("POST", _OPENAI_URL))
        )

        with patch(
            "consensus_verifier.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(LLMError, match="timed out") as exc_info:
                await provider.complete("s", "u")
        assert exc_info.value.provider_name == "openai:gpt-4o"

    @pytest.mark.asyncio
    async def test_rate_limit_wrapped(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.openai_provider import OpenAILLMProvider

        request = httpx.Request("POST", _OPENAI_URL)
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.RateLimitError(
                "slow down", response=httpx.Response(429, request=request), body=None
            )
        )

        with patch(
            "consensus_verifier.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(RateLimitError):
                await provider.complete("s", "u")


# ======================================================================
# Anthropic provider
# ======================================================================


class TestAnthropicLLMProvider:
    def test_provider_name(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.anthropic_provider import AnthropicLLMProvider

        assert AnthropicLLMProvider(settings).get_provider_name() == (
            "anthropic:claude-sonnet-4-20250514"
        )

    @pytest.mark.asyncio
    async def test_complete_joins_text_blocks(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.anthropic_provider import AnthropicLLMProvider

        response = MagicMock()
        response.content = [
            MagicMock(type="text", text='{"labels":'),
            MagicMock(type="text", text='["Axis"]}'),
        ]
        response.usage = MagicMock(input_tokens=10, output_tokens=20)
        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=response)

        with patch(
            "consensus_verifier.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicLLMProvider(settings)
            result = await provider.complete("system prompt", "user prompt")

        assert result == '{"labels":\n["Axis"]}'
        assert mock_client.messages.create.await_args.kwargs["system"] == "system prompt"

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(
            side_effect=anthropic.APIConnectionError(request=httpx.Request("POST", _ANTHROPIC_URL))
        )

        with patch(
            "consensus_verifier.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicLLMProvider(settings)
            with pytest.raises(LLMError, match="API error"):
                await provider.complete("s", "u")

    @pytest.mark.asyncio
    async def test_no_text_blocks_raises(self, settings: Settings) -> None:
        from consensus_verifier.providers.llm.anthropic_provider import AnthropicLLMProvider

        response = MagicMock()
        response.content = []
        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=response)

        with patch(
            "consensus_verifier.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicLLMProvider(settings)
            with pytest.raises(LLMError, match="no text"):
                await provider.complete("s", "u")
