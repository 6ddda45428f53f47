"""Retrieval models: vector records, search results, and citations.

The flow through these models mirrors the RAG pipeline:

    Chunk --embed--> VectorRecord --store/query--> SearchResult
    SearchResult --enrich--> EnrichedSearchResult   (search endpoint)
    SearchResult --cite-->   Citation               (chat answers)

All models are frozen; a search result never changes once ranked.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def make_record_id(document_id: str, chunk_id: str) -> str:
    """Return the vector-store id for a chunk: ``{document_id}_{chunk_id}``."""
    return f"{document_id}_{chunk_id}"


class VectorRecord(BaseModel):
    """One embedded chunk as submitted to the vector store.

    ``metadata`` carries ``document_id``, ``document_name``, ``chunk_id``,
    ``chunk_index``, ``text``, ``start_index`` and ``end_index`` so a
    query hit can be turned back into a :class:`SearchResult` without a
    second lookup.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    embedding: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return str(self.metadata.get("text", ""))


class SearchResult(BaseModel):
    """A ranked chunk returned by a similarity query."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    document_id: str
    document_name: str = ""
    text: str
    score: float = Field(ge=0.0, le=1.0, description="Cosine similarity clamped to [0, 1].")


class EnrichedSearchResult(SearchResult):
    """A search result decorated with labels for the search endpoint."""

    relevance_category: str
    context_snippet: str
    document_type: str


class Citation(BaseModel):
    """A user-facing reference tying an answer back to a source chunk."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1, description="1-based position in the citation list.")
    document_id: str
    document_name: str
    relevance_score: int = Field(ge=0, le=100, description="Score as a whole percentage.")
    excerpt: str
    chunk_id: str


class UpsertResult(BaseModel):
    """Outcome of a batched vector upsert."""

    model_config = ConfigDict(frozen=True)

    records_upserted: int = 0
    batches_completed: int = 0
    batches_total: int = 0
