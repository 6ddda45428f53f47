"""Unit tests for the OpenAI LLM and embedding provider adapters.

The ``openai.AsyncOpenAI`` constructor is patched so no request leaves
the process.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from rechtspraak.config.settings import Settings
from rechtspraak.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from rechtspraak.providers.llm.openai_provider import OpenAILLMProvider
from rechtspraak.utils.errors import ProviderError, RateLimitedError

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/test")


def _rate_limit_error() -> openai.RateLimitError:
    return openai.RateLimitError(
        "Rate limit reached", response=httpx.Response(429, request=_REQUEST), body=None
    )


def _api_error() -> openai.APIError:
    return openai.APIError("Internal server error", request=_REQUEST, body=None)


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="sk-test", openai_base_url="", openai_text_model="")


class TestOpenAILLMProvider:
    def test_names(self, settings: Settings) -> None:
        provider = OpenAILLMProvider(settings=settings)
        assert provider.get_provider_name() == "openai"
        assert provider.get_model_name() == "gpt-4o-mini"

    def test_is_available_without_key(self) -> None:
        assert OpenAILLMProvider(settings=Settings(openai_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_sends_system_and_user(self, settings: Settings) -> None:
        mock_response = MagicMock()
        mock_response.choices = [MagicMock(message=MagicMock(content="Het ontslag is geldig."))]
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=mock_response)

        with patch("rechtspraak.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings=settings)
            answer = await provider.complete("systeem", "vraag", temperature=0.3, max_tokens=1000)

        assert answer == "Het ontslag is geldig."
        kwargs = mock_client.chat.completions.create.await_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "systeem"},
            {"role": "user", "content": "vraag"},
        ]
        assert kwargs["top_p"] == 0.9
        assert kwargs["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_empty_system_prompt_is_omitted(self, settings: Settings) -> None:
        mock_response = MagicMock()
        mock_response.choices = [MagicMock(message=MagicMock(content="1. Vraag?"))]
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=mock_response)

        with patch("rechtspraak.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            await OpenAILLMProvider(settings=settings).complete("", "vervolg", temperature=0.7, max_tokens=200)

        messages = mock_client.chat.completions.create.await_args.kwargs["messages"]
        assert messages == [{"role": "user", "content": "vervolg"}]

    @pytest.mark.asyncio
    async def test_rate_limit_maps_to_rate_limited_error(self, settings: Settings) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(side_effect=_rate_limit_error())

        with patch("rechtspraak.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            with pytest.raises(RateLimitedError):
                await OpenAILLMProvider(settings=settings).complete("s", "u")

    @pytest.mark.asyncio
    async def test_api_error_maps_to_provider_error(self, settings: Settings) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(side_effect=_api_error())

        with patch("rechtspraak.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            with pytest.raises(ProviderError, match="API error"):
                await OpenAILLMProvider(settings=settings).complete("s", "u")

    @pytest.mark.asyncio
    async def test_empty_content(self, settings: Settings) -> None:
        mock_response = MagicMock()
        mock_response.choices = [MagicMock(message=MagicMock(content=None))]
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=mock_response)

        with patch("rechtspraak.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            with pytest.raises(ProviderError, match="empty response"):
                await OpenAILLMProvider(settings=settings).complete("s", "u")


class TestOpenAIEmbeddingProvider:
    def test_dimension_and_name(self, settings: Settings) -> None:
        provider = OpenAIEmbeddingProvider(settings=settings)
        assert provider.get_dimension() == 1536
        assert provider.get_provider_name() == "openai_embedding"

    @pytest.mark.asyncio
    async def test_embed_orders_by_index(self, settings: Settings) -> None:
        mock_response = MagicMock()
        mock_response.data = [
            MagicMock(index=1, embedding=[0.2]),
            MagicMock(index=0, embedding=[0.1]),
        ]
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=mock_response)

        with patch(
            "rechtspraak.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            vectors = await OpenAIEmbeddingProvider(settings=settings).embed(["a", "b"])

        assert vectors == [[0.1], [0.2]]
        assert mock_client.embeddings.create.await_args.kwargs["model"] == "text-embedding-3-small"

    @pytest.mark.asyncio
    async def test_empty_input(self, settings: Settings) -> None:
        assert await OpenAIEmbeddingProvider(settings=settings).embed([]) == []

    @pytest.mark.asyncio
    async def test_rate_limit(self, settings: Settings) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(side_effect=_rate_limit_error())

        with patch(
            "rechtspraak.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(RateLimitedError):
                await OpenAIEmbeddingProvider(settings=settings).embed(["a"])
