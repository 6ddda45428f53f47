"""Background ingestion of source documents into the vector index.

:meth:`IngestionService.register` validates a source reference, records a
``pending`` document and returns at once; the pipeline then runs as a
fire-and-forget asyncio task:

    downloading  -> fetch the file into the temp directory
    extracting   -> bytes to normalized text (+ metadata)
    chunking     -> overlapping character windows
    vectorizing  -> embed the chunks, upsert the vector records
    completed

Every status change goes through :meth:`DocumentStore.transition`, so the
state machine cannot run backwards.  Any failure moves the document to
``error`` with the message and timestamp; nothing is raised out of the
task.  The downloaded artifact is deleted on every exit path.  A
cancelled pipeline is recorded as ``error`` before the cancellation
propagates, and a document deleted mid-run has any vectors its pipeline
wrote removed again.

Vectors that landed before a failing upsert batch are not rolled back.
The count is logged as ``ingestion_orphaned_vectors`` and kept on the
document as ``vectors_upserted``; re-ingesting the same file overwrites
them because record ids are deterministic.
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path

import structlog

from rechtspraak.interfaces.file_source_provider import IFileSourceProvider
from rechtspraak.models.document import Document, DocumentStatus, FileArtifact
from rechtspraak.services.document_store import DocumentStore
from rechtspraak.services.embedding_client import EmbeddingClient
from rechtspraak.services.ingestion.chunker import TextChunker
from rechtspraak.services.ingestion.text_extractor import TextExtractor
from rechtspraak.services.vector_index import VectorIndex, build_records
from rechtspraak.utils.errors import PartialUpsertError
from rechtspraak.utils.logging import ingestion_context
from rechtspraak.utils.temp_files import remove_artifact

logger = structlog.get_logger(logger_name=__name__)


class _DocumentRemovedError(Exception):
    """The document was deleted while its pipeline was still running."""


class IngestionService:
    """Runs the download → extract → chunk → vectorize pipeline.

    Parameters
    ----------
    documents:
        Registry holding the document records and their status.
    file_source:
        Resolves and downloads source references.
    extractor:
        Turns downloaded bytes into normalized text.
    chunker:
        Splits text into overlapping windows.
    embedder:
        Embeds chunk texts in batches.
    index:
        Vector index receiving the records.
    """

    def __init__(
        self,
        documents: DocumentStore,
        file_source: IFileSourceProvider,
        extractor: TextExtractor,
        chunker: TextChunker,
        embedder: EmbeddingClient,
        index: VectorIndex,
    ) -> None:
        self._documents = documents
        self._file_source = file_source
        self._extractor = extractor
        self._chunker = chunker
        self._embedder = embedder
        self._index = index
        # Strong references keep fire-and-forget tasks alive until done.
        self._tasks: dict[str, asyncio.Task[None]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register(self, source_ref: str) -> Document:
        """Record a pending document for *source_ref* and start processing it.

        Raises
        ------
        ValidationError
            If the file source does not recognise the reference.
        """
        file_id = self._file_source.resolve_reference(source_ref)
        document_id = str(uuid.uuid4())
        document = self._documents.add(
            Document(
                id=document_id,
                source_ref=source_ref.strip(),
                file_id=file_id,
                name=f"Document {document_id[:8]}",
            )
        )
        logger.info("document_registered", document_id=document_id, file_id=file_id)

        task = asyncio.create_task(self.process(document_id), name=f"ingest-{document_id}")
        self._tasks[document_id] = task
        task.add_done_callback(lambda _t, doc_id=document_id: self._tasks.pop(doc_id, None))
        return document

    async def process(self, document_id: str) -> None:
        """Run the full pipeline for a registered document.

        Failures are recorded on the document and never raised.  A
        cancellation is recorded the same way and then re-raised.
        """
        document = self._documents.get(document_id)
        if document is None:
            return
        with ingestion_context(document_id):
            await self._run(document)

    async def _run(self, document: Document) -> None:
        document_id = document.id
        artifact: FileArtifact | None = None
        try:
            self._advance(document_id, DocumentStatus.DOWNLOADING)
            artifact = await self._file_source.fetch(document.source_ref)

            self._advance(
                document_id,
                DocumentStatus.EXTRACTING,
                name=artifact.display_name,
                mime_type=artifact.mime_type,
                size=artifact.size,
            )
            data = await asyncio.to_thread(Path(artifact.path).read_bytes)
            content = await self._extractor.extract(data, artifact.mime_type)

            self._advance(
                document_id,
                DocumentStatus.CHUNKING,
                content=content,
                metadata=self._extractor.describe(content),
            )
            chunks = self._chunker.chunk(content, document_id=document_id)

            self._advance(
                document_id,
                DocumentStatus.VECTORIZING,
                chunks=chunks,
                chunk_count=len(chunks),
            )
            embeddings = await self._embedder.embed([chunk.text for chunk in chunks])
            records = build_records(document_id, artifact.display_name, chunks, embeddings)
            upserted = await self._index.upsert(records)

            self._advance(
                document_id,
                DocumentStatus.COMPLETED,
                vectors_upserted=upserted.records_upserted,
            )
            logger.info(
                "ingestion_completed",
                document_id=document_id,
                chunk_count=len(chunks),
                vectors_upserted=upserted.records_upserted,
            )
        except _DocumentRemovedError:
            logger.warning("ingestion_document_removed", document_id=document_id)
        except PartialUpsertError as exc:
            logger.error(
                "ingestion_orphaned_vectors",
                document_id=document_id,
                orphaned_count=exc.records_upserted,
                batches_completed=exc.batches_completed,
            )
            self._fail(document_id, exc, vectors_upserted=exc.records_upserted)
        except asyncio.CancelledError:
            self._fail(document_id, RuntimeError("Ingestion was cancelled before it finished"))
            raise
        except Exception as exc:  # noqa: BLE001
            self._fail(document_id, exc)
        finally:
            if artifact is not None:
                remove_artifact(artifact.path)

        if document_id not in self._documents:
            await self._purge_vectors(document_id)

    async def wait_for(self, document_id: str) -> Document | None:
        """Wait until *document_id*'s pipeline has finished and return the record."""
        task = self._tasks.get(document_id)
        if task is not None:
            await asyncio.shield(task)
        return self._documents.get(document_id)

    async def drain(self) -> None:
        """Wait for every in-flight pipeline."""
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def is_processing(self, document_id: str) -> bool:
        return document_id in self._tasks

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _advance(self, document_id: str, target: DocumentStatus, **updates: object) -> None:
        if document_id not in self._documents:
            raise _DocumentRemovedError(document_id)
        self._documents.transition(document_id, target, **updates)

    async def _purge_vectors(self, document_id: str) -> None:
        """Drop vectors an upsert wrote after the document was deleted."""
        try:
            deleted = await self._index.delete_by_document(document_id)
        except Exception as exc:  # noqa: BLE001
            logger.error("ingestion_orphan_cleanup_failed", document_id=document_id, error=str(exc))
            return
        if deleted:
            logger.warning("ingestion_orphans_removed", document_id=document_id, deleted_count=deleted)

    def _fail(self, document_id: str, exc: Exception, **updates: object) -> None:
        document = self._documents.get(document_id)
        if document is None or document.status.is_terminal:
            logger.warning(
                "ingestion_failure_unrecorded",
                document_id=document_id,
                error=str(exc),
            )
            return
        stage = document.status.value
        self._documents.transition(document_id, DocumentStatus.ERROR, error=str(exc), **updates)
        logger.error(
            "ingestion_failed",
            document_id=document_id,
            stage=stage,
            error_type=type(exc).__name__,
            error=str(exc),
        )
