"""Abstract base class for vector-store service providers.

Defines the low-level contract for storing, querying, and deleting
embedded chunks in a named collection.  Batching, delays, retries and the
two-phase delete-by-document live in
:class:`~rechtspraak.services.vector_index.VectorIndex`; providers only
translate single calls to their backend.

**Filter syntax** (the *where* dict): plain equality on metadata keys,
e.g. ``{"document_id": "abc"}``.  Multiple keys are AND-ed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from rechtspraak.models.rag import SearchResult, VectorRecord


# Concrete implementations: ChromaDBProvider, InMemoryVectorStoreProvider
# (rechtspraak/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for vector stores used by the RAG pipeline."""

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> int:
        """Insert or replace records by id.

        Returns
        -------
        int
            The number of records written.

        Raises
        ------
        rechtspraak.utils.errors.ProviderError
            If the store operation fails.
        """

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        where: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Return up to *top_k* nearest records, most similar first.

        Parameters
        ----------
        vector:
            Query embedding.
        top_k:
            Maximum number of results.
        where:
            Optional metadata filter applied before ranking.
        """

    @abstractmethod
    async def get_ids(self, where: dict[str, Any]) -> list[str]:
        """Return the ids of every record matching *where*."""

    @abstractmethod
    async def delete(self, ids: list[str]) -> int:
        """Delete records by id and return how many were requested for deletion."""

    @abstractmethod
    async def count(self) -> int:
        """Return the number of records in the collection."""

    @abstractmethod
    async def reset(self) -> None:
        """Remove every record from the collection."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
