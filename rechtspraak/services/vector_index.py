"""Batched vector-store operations on top of an IVectorStoreProvider.

:class:`VectorIndex` adds the pipeline-level behaviour the raw providers
do not have:

- **upsert** in fixed-size batches with an inter-batch delay, retrying a
  rate-limited batch with bounded backoff.  A failing batch aborts the
  rest and raises :class:`PartialUpsertError` carrying how many batches
  and records already landed (nothing is rolled back).
- **query** capped at ``top_k`` and re-sorted with a stable sort so equal
  scores keep the store's order.
- **delete_by_document** in two phases: collect every id whose metadata
  ``document_id`` matches, then delete those ids in one call.  Zero
  matches is a successful no-op.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from rechtspraak.interfaces.vector_store_provider import IVectorStoreProvider
from rechtspraak.models.document import Chunk
from rechtspraak.models.rag import SearchResult, UpsertResult, VectorRecord, make_record_id
from rechtspraak.utils.errors import PartialUpsertError, ProviderError, ValidationError
from rechtspraak.utils.retry import retry_on_rate_limit

logger = structlog.get_logger(logger_name=__name__)


def build_records(
    document_id: str,
    document_name: str,
    chunks: list[Chunk],
    embeddings: list[list[float]],
) -> list[VectorRecord]:
    """Pair chunks with their embeddings as vector records.

    Raises
    ------
    ValueError
        If ``len(chunks) != len(embeddings)``.
    """
    if len(chunks) != len(embeddings):
        raise ValueError(
            f"chunks ({len(chunks)}) and embeddings ({len(embeddings)}) must have the same length"
        )
    return [
        VectorRecord(
            id=make_record_id(document_id, chunk.id),
            embedding=embedding,
            metadata={
                "document_id": document_id,
                "document_name": document_name,
                "chunk_id": chunk.id,
                "chunk_index": chunk.index,
                "text": chunk.text,
                "start_index": chunk.start_index,
                "end_index": chunk.end_index,
            },
        )
        for chunk, embedding in zip(chunks, embeddings, strict=True)
    ]


class VectorIndex:
    """The pipeline's view of the vector store.

    Parameters
    ----------
    provider:
        Backend addressed by a named collection.
    batch_size:
        Records per upsert call.
    inter_batch_delay:
        Seconds slept between upsert batches.
    max_retries:
        Retries allowed for a rate-limited batch.
    base_backoff:
        Seconds before the first retry; doubles per retry.
    """

    def __init__(
        self,
        provider: IVectorStoreProvider,
        batch_size: int = 100,
        inter_batch_delay: float = 0.1,
        max_retries: int = 3,
        base_backoff: float = 1.0,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._provider = provider
        self._batch_size = batch_size
        self._delay = inter_batch_delay
        self._max_retries = max_retries
        self._base_backoff = base_backoff

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    def is_available(self) -> bool:
        return self._provider.is_available()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upsert(self, records: list[VectorRecord]) -> UpsertResult:
        """Write *records* batch by batch; idempotent by record id."""
        batches = [
            records[start : start + self._batch_size]
            for start in range(0, len(records), self._batch_size)
        ]
        completed = 0
        upserted = 0

        for number, batch in enumerate(batches, start=1):
            if number > 1 and self._delay > 0:
                await asyncio.sleep(self._delay)
            try:
                written = await retry_on_rate_limit(
                    lambda batch=batch: self._provider.upsert(batch),
                    max_retries=self._max_retries,
                    base_backoff=self._base_backoff,
                    operation_name="vector_upsert_batch",
                )
            except Exception as exc:
                logger.error(
                    "vector_upsert_aborted",
                    provider=self.provider_name,
                    failed_batch=number,
                    batches_completed=completed,
                    batches_total=len(batches),
                    records_upserted=upserted,
                    error=str(exc),
                )
                raise PartialUpsertError(
                    message=(
                        f"Vector upsert failed on batch {number}/{len(batches)} "
                        f"after {completed} completed batches: {exc}"
                    ),
                    provider_name=self.provider_name,
                    batches_completed=completed,
                    records_upserted=upserted,
                ) from exc

            completed += 1
            upserted += written
            logger.debug(
                "vector_upsert_batch",
                provider=self.provider_name,
                batch=number,
                batches_total=len(batches),
                records=len(batch),
            )

        logger.info(
            "vectors_upserted",
            provider=self.provider_name,
            records=upserted,
            batches=completed,
        )
        return UpsertResult(
            records_upserted=upserted,
            batches_completed=completed,
            batches_total=len(batches),
        )

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: dict[str, Any] | None = None,  # noqa: A002
    ) -> list[SearchResult]:
        """Return at most *top_k* results by descending similarity."""
        if top_k <= 0:
            raise ValidationError(message=f"top_k must be positive, got {top_k}")
        try:
            results = await self._provider.query(vector, top_k, where=filter)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(
                message=f"Vector query failed: {exc}",
                provider_name=self.provider_name,
            ) from exc

        ranked = sorted(results, key=lambda r: r.score, reverse=True)
        return ranked[:top_k]

    async def delete_by_document(self, document_id: str) -> int:
        """Delete every vector belonging to *document_id*; return the count deleted."""
        ids = await self._provider.get_ids(where={"document_id": document_id})
        if not ids:
            logger.info("vector_delete_noop", document_id=document_id)
            return 0

        deleted = await self._provider.delete(ids)
        logger.info("vectors_deleted", document_id=document_id, deleted_count=deleted)
        return deleted

    async def count(self) -> int:
        return await self._provider.count()
