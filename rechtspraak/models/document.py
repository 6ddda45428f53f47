"""Document ingestion models.

``Document`` is the mutable record the ingestion service owns for the
lifetime of a source document; its ``status`` walks a forward-only state
machine (see :class:`DocumentStatus`).  ``Chunk``, ``DocumentMetadata``
and ``FileArtifact`` are frozen value objects produced along the way.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class DocumentStatus(str, Enum):
    """Ingestion lifecycle of a document.

    Forward-only:
    ``pending -> downloading -> extracting -> chunking -> vectorizing -> completed``.
    Any non-terminal state may move to ``error``.  ``completed`` and
    ``error`` are terminal.
    """

    PENDING = "pending"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    CHUNKING = "chunking"
    VECTORIZING = "vectorizing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (DocumentStatus.COMPLETED, DocumentStatus.ERROR)


# Position of each non-error state in the forward sequence.
STATUS_ORDER: dict[DocumentStatus, int] = {
    DocumentStatus.PENDING: 0,
    DocumentStatus.DOWNLOADING: 1,
    DocumentStatus.EXTRACTING: 2,
    DocumentStatus.CHUNKING: 3,
    DocumentStatus.VECTORIZING: 4,
    DocumentStatus.COMPLETED: 5,
}


class Chunk(BaseModel):
    """A trimmed window of a document's normalized text."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Sequential chunk id, e.g. 'chunk_0'.")
    document_id: str
    index: int = Field(ge=0, description="Position among the retained chunks.")
    text: str
    start_index: int = Field(ge=0, description="Window start offset in the content.")
    end_index: int = Field(ge=0, description="Window end offset (exclusive).")
    length: int = Field(ge=0, description="Length of the trimmed text.")


class DocumentMetadata(BaseModel):
    """Size statistics and language guess computed after extraction."""

    model_config = ConfigDict(frozen=True)

    character_count: int = 0
    word_count: int = 0
    line_count: int = 0
    paragraph_count: int = 0
    language: str = "unknown"
    extracted_at: datetime = Field(default_factory=_utcnow)


class FileArtifact(BaseModel):
    """A downloaded source file held on local disk until extraction finishes."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Local path of the temporary file.")
    mime_type: str
    display_name: str
    size: int = Field(ge=0)
    file_id: str = ""


class Document(BaseModel):
    """An ingested (or ingesting) source document.

    Mutated in place by :class:`~rechtspraak.services.document_store.DocumentStore`
    only -- status changes go through ``DocumentStore.transition`` so the
    state machine cannot be bypassed.
    """

    id: str
    source_ref: str = Field(description="The reference the document was registered with.")
    file_id: str = ""
    status: DocumentStatus = DocumentStatus.PENDING
    name: str = ""
    mime_type: str = "unknown"
    size: int = 0
    content: str = ""
    chunks: list[Chunk] = Field(default_factory=list)
    chunk_count: int = 0
    vectors_upserted: int = 0
    metadata: DocumentMetadata | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = None
    error: str | None = None
    error_at: datetime | None = None
