"""In-process vector store backed by numpy.

Keeps records in an insertion-ordered dict and ranks by cosine
similarity.  Intended for development and tests (``VECTOR_STORE_PROVIDER=memory``);
nothing survives a restart.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import structlog

from rechtspraak.interfaces.vector_store_provider import IVectorStoreProvider
from rechtspraak.models.rag import SearchResult, VectorRecord
from rechtspraak.utils.errors import ProviderError

logger = structlog.get_logger(logger_name=__name__)


class InMemoryVectorStoreProvider(IVectorStoreProvider):
    """Cosine-similarity vector store held entirely in memory.

    Re-upserting an existing id replaces the record in place, so store
    order (used to break score ties) reflects first insertion.
    """

    def __init__(self, collection_name: str = "rechtspraak_documents") -> None:
        self._collection_name = collection_name
        self._records: dict[str, VectorRecord] = {}
        self._dimension: int | None = None

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def upsert(self, records: list[VectorRecord]) -> int:
        for record in records:
            if self._dimension is None:
                self._dimension = len(record.embedding)
            elif len(record.embedding) != self._dimension:
                raise ProviderError(
                    message=(
                        f"Embedding dimension mismatch: collection holds {self._dimension}-dim "
                        f"vectors, record {record.id} has {len(record.embedding)}"
                    ),
                    provider_name=self.get_provider_name(),
                )
            self._records[record.id] = record
        return len(records)

    async def query(
        self,
        vector: list[float],
        top_k: int,
        where: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        candidates = [r for r in self._records.values() if self._matches(r, where)]
        if not candidates or top_k <= 0:
            return []

        matrix = np.asarray([r.embedding for r in candidates], dtype=float)
        query = np.asarray(vector, dtype=float)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            similarities = np.where(norms > 0, matrix @ query / norms, 0.0)

        # Stable sort keeps store order for equal scores.
        order = np.argsort(-similarities, kind="stable")[:top_k]
        results: list[SearchResult] = []
        for idx in order:
            record = candidates[int(idx)]
            meta = record.metadata
            results.append(
                SearchResult(
                    chunk_id=str(meta.get("chunk_id", record.id)),
                    document_id=str(meta.get("document_id", "")),
                    document_name=str(meta.get("document_name", "")),
                    text=record.text,
                    score=float(max(0.0, min(1.0, similarities[int(idx)]))),
                )
            )
        return results

    async def get_ids(self, where: dict[str, Any]) -> list[str]:
        return [r.id for r in self._records.values() if self._matches(r, where)]

    async def delete(self, ids: list[str]) -> int:
        removed = 0
        for record_id in ids:
            if self._records.pop(record_id, None) is not None:
                removed += 1
        if not self._records:
            self._dimension = None
        return removed

    async def count(self) -> int:
        return len(self._records)

    async def reset(self) -> None:
        self._records.clear()
        self._dimension = None

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _matches(record: VectorRecord, where: dict[str, Any] | None) -> bool:
        if not where:
            return True
        return all(record.metadata.get(key) == value for key, value in where.items())
