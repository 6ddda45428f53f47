"""Semantic search over the ingested case law, with display labels.

Unlike the chat flow, search returns every hit the index gives back (no
relevance threshold) and decorates each one with a Dutch relevance
category, a mid-text context snippet, and a document type guessed from
the document name.
"""

from __future__ import annotations

import structlog

from rechtspraak.models.chat import ChatOptions
from rechtspraak.models.rag import EnrichedSearchResult, SearchResult
from rechtspraak.services.embedding_client import EmbeddingClient
from rechtspraak.services.vector_index import VectorIndex
from rechtspraak.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)

_SNIPPET_LENGTH = 200
_SNIPPET_WINDOW = 50

# Checked in order; the first substring found in the lowercased name wins.
_DOCUMENT_TYPES: tuple[str, ...] = (
    "hoge raad",
    "gerechtshof",
    "rechtbank",
    "kantonrechter",
    "uitspraak",
    "vonnis",
    "arrest",
)


# ------------------------------------------------------------------
# Labelling helpers
# ------------------------------------------------------------------

def categorize_relevance(score: float) -> str:
    if score >= 0.8:
        return "zeer relevant"
    if score >= 0.6:
        return "relevant"
    if score >= 0.4:
        return "mogelijk relevant"
    return "minder relevant"


def infer_document_type(document_name: str | None) -> str:
    """Guess the issuing court or document kind from its name."""
    if not document_name:
        return "onbekend"
    name = document_name.lower()
    for document_type in _DOCUMENT_TYPES:
        if document_type in name:
            return document_type
    return "juridisch document"


def extract_context_snippet(text: str) -> str:
    """Return a sentence-bounded excerpt from the middle of *text*.

    Short texts (at most 200 characters) are returned unchanged.  For
    longer texts the snippet runs from just after the last ``.`` at or
    before ``mid - 50`` up to and including the first ``.`` at or after
    ``mid + 50``.  When either boundary is missing the first 200
    characters are returned with ``...`` appended.
    """
    if not text or len(text) <= _SNIPPET_LENGTH:
        return text

    mid = len(text) // 2
    start = text.rfind(".", 0, max(0, mid - _SNIPPET_WINDOW) + 1)
    end = text.find(".", mid + _SNIPPET_WINDOW)

    if start > 0 and end > start:
        return text[start + 1 : end + 1].strip()
    return text[:_SNIPPET_LENGTH] + "..."


def enrich(result: SearchResult) -> EnrichedSearchResult:
    return EnrichedSearchResult(
        **result.model_dump(),
        relevance_category=categorize_relevance(result.score),
        context_snippet=extract_context_snippet(result.text),
        document_type=infer_document_type(result.document_name),
    )


# ------------------------------------------------------------------
# Service
# ------------------------------------------------------------------

class SearchService:
    """Embeds a query, searches the index, and labels the hits.

    Parameters
    ----------
    embedder:
        Client used to embed the query text.
    index:
        Vector index to search.
    default_limit:
        Results returned when the caller does not pass ``max_results``.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        index: VectorIndex,
        default_limit: int = 5,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._default_limit = default_limit

    async def search(
        self,
        query: str,
        options: ChatOptions | None = None,
    ) -> list[EnrichedSearchResult]:
        if not query or not query.strip():
            raise ValidationError(message="Search query is required")

        options = options or ChatOptions()
        limit = options.max_results or self._default_limit

        vector = await self._embedder.embed_query(query)
        results = await self._index.query(vector, limit, filter=options.to_filter())

        logger.info(
            "documents_searched",
            query_length=len(query),
            limit=limit,
            result_count=len(results),
        )
        return [enrich(result) for result in results]
