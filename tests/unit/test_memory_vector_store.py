"""Unit tests for the numpy-backed in-memory vector store."""

from __future__ import annotations

import pytest

from rechtspraak.models.rag import VectorRecord
from rechtspraak.providers.vector_store.memory_provider import InMemoryVectorStoreProvider
from rechtspraak.utils.errors import ProviderError


def _record(record_id: str, embedding: list[float], document_id: str = "doc-1") -> VectorRecord:
    return VectorRecord(
        id=record_id,
        embedding=embedding,
        metadata={
            "document_id": document_id,
            "document_name": f"Naam {document_id}",
            "chunk_id": record_id,
            "text": f"tekst {record_id}",
        },
    )


class TestInMemoryVectorStore:
    @pytest.mark.asyncio
    async def test_query_ranks_by_cosine(self, memory_store: InMemoryVectorStoreProvider) -> None:
        await memory_store.upsert(
            [
                _record("far", [0.0, 1.0]),
                _record("near", [1.0, 0.1]),
                _record("exact", [2.0, 0.0]),
            ]
        )
        results = await memory_store.query([1.0, 0.0], top_k=3)

        assert [r.chunk_id for r in results] == ["exact", "near", "far"]
        assert results[0].score == pytest.approx(1.0)
        assert results[-1].score == pytest.approx(0.0)
        assert results[0].document_name == "Naam doc-1"

    @pytest.mark.asyncio
    async def test_negative_similarity_clamped(self, memory_store: InMemoryVectorStoreProvider) -> None:
        await memory_store.upsert([_record("opposite", [-1.0, 0.0])])
        [result] = await memory_store.query([1.0, 0.0], top_k=1)
        assert result.score == 0.0

    @pytest.mark.asyncio
    async def test_ties_keep_insertion_order(self, memory_store: InMemoryVectorStoreProvider) -> None:
        await memory_store.upsert([_record(f"r{i}", [1.0, 0.0]) for i in range(4)])
        results = await memory_store.query([1.0, 0.0], top_k=4)
        assert [r.chunk_id for r in results] == ["r0", "r1", "r2", "r3"]

    @pytest.mark.asyncio
    async def test_where_filter(self, memory_store: InMemoryVectorStoreProvider) -> None:
        await memory_store.upsert([_record("a", [1.0, 0.0], "doc-a"), _record("b", [1.0, 0.0], "doc-b")])
        results = await memory_store.query([1.0, 0.0], top_k=5, where={"document_id": "doc-b"})
        assert [r.document_id for r in results] == ["doc-b"]

    @pytest.mark.asyncio
    async def test_upsert_replaces_same_id(self, memory_store: InMemoryVectorStoreProvider) -> None:
        await memory_store.upsert([_record("a", [1.0, 0.0])])
        await memory_store.upsert([_record("a", [0.0, 1.0])])

        assert await memory_store.count() == 1
        [result] = await memory_store.query([0.0, 1.0], top_k=1)
        assert result.score == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, memory_store: InMemoryVectorStoreProvider) -> None:
        await memory_store.upsert([_record("a", [1.0, 0.0])])
        with pytest.raises(ProviderError, match="dimension mismatch"):
            await memory_store.upsert([_record("b", [1.0, 0.0, 0.0])])

    @pytest.mark.asyncio
    async def test_delete_and_reset(self, memory_store: InMemoryVectorStoreProvider) -> None:
        await memory_store.upsert([_record("a", [1.0]), _record("b", [1.0])])

        assert await memory_store.delete(["a", "missing"]) == 1
        assert await memory_store.get_ids({"document_id": "doc-1"}) == ["b"]

        await memory_store.reset()
        assert await memory_store.count() == 0
        assert await memory_store.query([1.0], top_k=1) == []
