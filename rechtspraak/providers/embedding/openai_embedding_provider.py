"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports both real OpenAI and OpenAI-compatible endpoints via a custom
``base_url``.  Exactly one API call is made per :meth:`embed`; batching and
rate-limit retries are the embedding client's job.
"""

from __future__ import annotations

import openai
import structlog

from rechtspraak.config.settings import Settings
from rechtspraak.interfaces.embedding_provider import IEmbeddingProvider
from rechtspraak.utils.errors import ProviderError, RateLimitedError

logger = structlog.get_logger(logger_name=__name__)

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "intfloat/multilingual-e5-large-instruct": 1024,
    "BAAI/bge-m3": 1024,
}


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` (1536 dims) unless
    ``openai_embedding_model`` names another model.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.openai_timeout_seconds, connect=5.0),
            # Retries are owned by EmbeddingClient so the retry budget is explicit.
            "max_retries": 0,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_embedding_model or "text-embedding-3-small"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1536)
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in a single request, preserving order."""
        if not texts:
            return []

        try:
            response = await self._client.embeddings.create(
                input=texts,
                model=self._model,
            )
        except openai.RateLimitError as exc:
            raise RateLimitedError(
                message=f"{self._provider_label} rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise ProviderError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        # The API returns items tagged with their input index.
        ordered = sorted(response.data, key=lambda item: item.index)
        logger.debug(
            "openai_embedding_request",
            model=self._model,
            provider=self._provider_label,
            batch_size=len(texts),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return [item.embedding for item in ordered]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
