"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search.  Fully local -- no external
service required.  ChromaDB's client is synchronous, so every call is
pushed to a worker thread to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

# Telemetry must be disabled before chromadb is imported.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from rechtspraak.interfaces.vector_store_provider import IVectorStoreProvider
from rechtspraak.models.rag import SearchResult, VectorRecord
from rechtspraak.utils.errors import ProviderError

logger = structlog.get_logger(logger_name=__name__)


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    Every record arrives with a pre-computed embedding, so ChromaDB's
    default ONNX model is never needed.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "Embeddings are pre-computed; ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


def _translate_where(where: dict[str, Any] | None) -> dict[str, Any] | None:
    """Turn a flat equality filter into ChromaDB's where syntax."""
    if not where:
        return None
    clauses = [{key: {"$eq": value}} for key, value in where.items()]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    Parameters
    ----------
    persist_directory:
        Directory ChromaDB persists its collection to.
    collection_name:
        Named index holding the document vectors.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "rechtspraak_documents",
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collection = self._open_collection()

    def _open_collection(self):  # noqa: ANN202
        # Newer ChromaDB versions refuse a collection whose persisted
        # embedding function differs; reopen without one in that case.
        try:
            return self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            return self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0
        try:
            await asyncio.to_thread(
                self._collection.upsert,
                ids=[r.id for r in records],
                embeddings=[r.embedding for r in records],
                documents=[r.text for r in records],
                metadatas=[r.metadata for r in records],
            )
        except Exception as exc:
            raise ProviderError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("chromadb_upsert", collection=self._collection_name, records=len(records))
        return len(records)

    async def query(
        self,
        vector: list[float],
        top_k: int,
        where: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Perform a cosine-similarity search; distance is mapped to ``1 - distance``."""
        try:
            total = await asyncio.to_thread(self._collection.count)
            if total == 0 or top_k <= 0:
                return []

            kwargs: dict[str, Any] = {
                "query_embeddings": [vector],
                "n_results": min(top_k, total),
                "include": ["documents", "metadatas", "distances"],
            }
            where_clause = _translate_where(where)
            if where_clause:
                kwargs["where"] = where_clause

            results = await asyncio.to_thread(self._collection.query, **kwargs)
        except Exception as exc:
            raise ProviderError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["ids"] or not results["ids"][0]:
            return []

        documents = results["documents"][0] if results.get("documents") else []
        metadatas = results["metadatas"][0] if results.get("metadatas") else []
        distances = results["distances"][0] if results.get("distances") else []

        hits: list[SearchResult] = []
        for position, record_id in enumerate(results["ids"][0]):
            meta = metadatas[position] if position < len(metadatas) and metadatas[position] else {}
            text = documents[position] if position < len(documents) and documents[position] else ""
            distance = distances[position] if position < len(distances) else 1.0
            hits.append(
                SearchResult(
                    chunk_id=str(meta.get("chunk_id", record_id)),
                    document_id=str(meta.get("document_id", "")),
                    document_name=str(meta.get("document_name", "")),
                    text=text or str(meta.get("text", "")),
                    score=max(0.0, min(1.0, 1.0 - float(distance))),
                )
            )

        hits.sort(key=lambda hit: hit.score, reverse=True)
        logger.debug(
            "chromadb_query",
            collection=self._collection_name,
            results_count=len(hits),
            top_score=hits[0].score if hits else 0.0,
        )
        return hits[:top_k]

    async def get_ids(self, where: dict[str, Any]) -> list[str]:
        try:
            existing = await asyncio.to_thread(
                self._collection.get,
                where=_translate_where(where),
                include=["metadatas"],
            )
        except Exception as exc:
            raise ProviderError(
                message=f"ChromaDB get failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return list(existing["ids"]) if existing["ids"] else []

    async def delete(self, ids: list[str]) -> int:
        if not ids:
            return 0
        try:
            await asyncio.to_thread(self._collection.delete, ids=ids)
        except Exception as exc:
            raise ProviderError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_delete", collection=self._collection_name, deleted_count=len(ids))
        return len(ids)

    async def count(self) -> int:
        try:
            return await asyncio.to_thread(self._collection.count)
        except Exception as exc:
            raise ProviderError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def reset(self) -> None:
        try:
            await asyncio.to_thread(self._client.delete_collection, self._collection_name)
        except ValueError:
            pass
        except Exception as exc:
            raise ProviderError(
                message=f"ChromaDB reset failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        self._collection = self._open_collection()
        logger.info("chromadb_reset", collection=self._collection_name)

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        try:
            self._client.heartbeat()
        except Exception:  # noqa: BLE001
            return False
        return True
