"""Abstract base class for text-embedding service providers.

Implementations wrap a concrete embedding backend (OpenAI
``text-embedding-3-small`` by default).  Batching, inter-batch delays and
rate-limit retries are handled one level up by
:class:`~rechtspraak.services.embedding_client.EmbeddingClient`, so a
provider only has to make one API call per :meth:`embed` invocation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAIEmbeddingProvider (rechtspraak/providers/embedding/)
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the RAG pipeline."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed in a single request.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.  Each
            inner list has length equal to :meth:`get_dimension`.

        Raises
        ------
        rechtspraak.utils.errors.RateLimitedError
            If the provider reports its rate limit was exceeded.
        rechtspraak.utils.errors.ProviderError
            For any other API failure.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Constant for the lifetime of the provider; every record in one
        vector collection shares it.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai_embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (e.g. API key present)."""
