"""Unit tests for citation building."""

from __future__ import annotations

import pytest

from rechtspraak.services.citation_service import (
    UNKNOWN_DOCUMENT_NAME,
    CitationService,
    make_excerpt,
    score_percentage,
)
from tests.conftest import make_result


class TestHelpers:
    def test_short_text_not_cut(self) -> None:
        assert make_excerpt("Korte tekst.") == "Korte tekst."

    def test_long_text_cut_at_200(self) -> None:
        excerpt = make_excerpt("a" * 250)
        assert excerpt == "a" * 200 + "..."

    def test_exactly_200_not_cut(self) -> None:
        assert make_excerpt("b" * 200) == "b" * 200

    @pytest.mark.parametrize(
        ("score", "expected"),
        [(0.876, 88), (0.0, 0), (1.0, 100), (0.005, 0), (0.994, 99)],
    )
    def test_score_percentage(self, score: float, expected: int) -> None:
        assert score_percentage(score) == expected


class TestCitationService:
    def test_numbered_from_one_in_order(self) -> None:
        results = [
            make_result(0.9, chunk_id="chunk_0", document_id="doc-a"),
            make_result(0.7, chunk_id="chunk_3", document_id="doc-b"),
        ]
        citations = CitationService().build(results)

        assert [c.id for c in citations] == [1, 2]
        assert [c.document_id for c in citations] == ["doc-a", "doc-b"]
        assert [c.relevance_score for c in citations] == [90, 70]
        assert citations[1].chunk_id == "chunk_3"

    def test_missing_name_uses_placeholder(self) -> None:
        [citation] = CitationService().build([make_result(0.5, document_name="")])
        assert citation.document_name == UNKNOWN_DOCUMENT_NAME

    def test_excerpt_applied(self) -> None:
        [citation] = CitationService().build([make_result(0.5, text="x" * 300)])
        assert citation.excerpt.endswith("...")
        assert len(citation.excerpt) == 203

    def test_empty(self) -> None:
        assert CitationService().build([]) == []
