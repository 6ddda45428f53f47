"""Relevance thresholding for raw search results."""

from __future__ import annotations

from rechtspraak.models.rag import SearchResult


def filter_relevant(
    results: list[SearchResult],
    min_score: float,
    max_results: int,
) -> list[SearchResult]:
    """Drop results scoring below *min_score* and keep at most *max_results*.

    Rank order is preserved; input that is not already sorted is sorted by
    descending score first (stable, so ties keep their original order).
    """
    if max_results <= 0:
        return []
    ranked = sorted(results, key=lambda r: r.score, reverse=True)
    return [r for r in ranked if r.score >= min_score][:max_results]
