"""Turns ranked search results into user-facing citations."""

from __future__ import annotations

from rechtspraak.models.rag import Citation, SearchResult

UNKNOWN_DOCUMENT_NAME = "Onbekend document"

_EXCERPT_LENGTH = 200


def make_excerpt(text: str, limit: int = _EXCERPT_LENGTH) -> str:
    """Return the first *limit* characters of *text*, suffixed with ``...`` when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def score_percentage(score: float) -> int:
    """Convert a ``[0, 1]`` similarity into a whole percentage."""
    return max(0, min(100, round(score * 100)))


class CitationService:
    """Builds :class:`Citation` lists in result order, numbered from 1."""

    def build(self, results: list[SearchResult]) -> list[Citation]:
        return [
            Citation(
                id=position,
                document_id=result.document_id,
                document_name=result.document_name or UNKNOWN_DOCUMENT_NAME,
                relevance_score=score_percentage(result.score),
                excerpt=make_excerpt(result.text),
                chunk_id=result.chunk_id,
            )
            for position, result in enumerate(results, start=1)
        ]
