"""Batched, rate-limit-aware embedding client.

Sits between the pipelines and an
:class:`~rechtspraak.interfaces.embedding_provider.IEmbeddingProvider`:

- groups inputs into provider-sized batches (default 100 texts),
- sleeps a small fixed delay between batches to stay under rate limits,
- retries only the batch that hit a rate limit, with bounded exponential
  backoff (see :mod:`rechtspraak.utils.retry`),
- turns anything unexpected into a :class:`ProviderError`.
"""

from __future__ import annotations

import asyncio

import structlog

from rechtspraak.interfaces.embedding_provider import IEmbeddingProvider
from rechtspraak.utils.errors import ProviderError, ValidationError
from rechtspraak.utils.retry import retry_on_rate_limit

logger = structlog.get_logger(logger_name=__name__)


class EmbeddingClient:
    """Converts texts to vectors through an embedding provider.

    Parameters
    ----------
    provider:
        The embedding backend.
    batch_size:
        Maximum texts per provider request.
    inter_batch_delay:
        Seconds slept between consecutive batches.
    max_retries:
        Retries allowed for a rate-limited batch.
    base_backoff:
        Seconds before the first retry; doubles per retry.
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        batch_size: int = 100,
        inter_batch_delay: float = 0.1,
        max_retries: int = 3,
        base_backoff: float = 1.0,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._provider = provider
        self._batch_size = batch_size
        self._delay = inter_batch_delay
        self._max_retries = max_retries
        self._base_backoff = base_backoff

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    @property
    def dimension(self) -> int:
        return self._provider.get_dimension()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per input text, in input order."""
        if not texts:
            return []

        vectors: list[list[float]] = []
        batch_total = (len(texts) + self._batch_size - 1) // self._batch_size
        for batch_number, start in enumerate(range(0, len(texts), self._batch_size), start=1):
            if batch_number > 1 and self._delay > 0:
                await asyncio.sleep(self._delay)

            batch = texts[start : start + self._batch_size]
            batch_vectors = await self._embed_batch(batch)
            vectors.extend(batch_vectors)
            logger.debug(
                "embedding_batch",
                provider=self.provider_name,
                batch=batch_number,
                batch_total=batch_total,
                batch_size=len(batch),
            )

        logger.info("texts_embedded", provider=self.provider_name, count=len(vectors))
        return vectors

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query string."""
        if not text or not text.strip():
            raise ValidationError(message="Cannot embed an empty query")
        result = await self.embed([text])
        return result[0]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        try:
            vectors = await retry_on_rate_limit(
                lambda: self._provider.embed(batch),
                max_retries=self._max_retries,
                base_backoff=self._base_backoff,
                operation_name="embed_batch",
            )
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(
                message=f"Embedding request failed: {exc}",
                provider_name=self.provider_name,
            ) from exc

        if len(vectors) != len(batch):
            raise ProviderError(
                message=f"Embedding provider returned {len(vectors)} vectors for {len(batch)} inputs",
                provider_name=self.provider_name,
            )
        return vectors
