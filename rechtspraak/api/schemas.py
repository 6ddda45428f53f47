"""Pydantic request/response schemas for the Rechtspraak API.

Request schemas end with ``Request`` and response schemas with
``Response``.  Domain models (``Document``, ``ChatResult``, ...) are reused
inside responses where their shape is already what clients need.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from rechtspraak.models.chat import BatchQueryResult, ChatOptions
from rechtspraak.models.conversation import Message
from rechtspraak.models.document import DocumentMetadata, DocumentStatus
from rechtspraak.models.rag import EnrichedSearchResult


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class IngestDocumentRequest(BaseModel):
    """A shareable Google Drive link to ingest."""

    google_drive_link: str = Field(..., min_length=1, max_length=2000)


class IngestDocumentResponse(BaseModel):
    document_id: str
    status: DocumentStatus
    message: str = "Document processing started"


class DocumentSummary(BaseModel):
    """A document as listed -- status and sizes, without content or chunks."""

    id: str
    name: str
    status: DocumentStatus
    mime_type: str
    size: int
    chunk_count: int
    created_at: datetime
    completed_at: datetime | None = None
    error: str | None = None


class DocumentDetailResponse(DocumentSummary):
    source_ref: str
    file_id: str
    vectors_upserted: int
    metadata: DocumentMetadata | None = None
    updated_at: datetime
    error_at: datetime | None = None


class DocumentListResponse(BaseModel):
    documents: list[DocumentSummary]
    total: int


class DeleteDocumentResponse(BaseModel):
    success: bool
    document_id: str


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

class ChatRequest(BaseModel):
    """One user message, optionally continuing an existing session."""

    message: str = Field(..., min_length=1, max_length=4000)
    session_id: str | None = None
    max_results: int | None = Field(default=None, ge=1, le=50)
    min_relevance_score: float | None = Field(default=None, ge=0.0, le=1.0)
    document_id: str | None = None

    def to_options(self) -> ChatOptions:
        return ChatOptions(
            max_results=self.max_results,
            min_relevance_score=self.min_relevance_score,
            document_id=self.document_id,
        )


class BatchChatRequest(BaseModel):
    queries: list[str] = Field(..., min_length=1, max_length=20)
    max_results: int | None = Field(default=None, ge=1, le=50)


class BatchChatResponse(BaseModel):
    results: list[BatchQueryResult]
    total: int
    succeeded: int


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=1000)
    limit: int | None = Field(default=None, ge=1, le=50)
    document_id: str | None = None


class SearchResponse(BaseModel):
    query: str
    results: list[EnrichedSearchResult]
    total: int


class ChatHistoryResponse(BaseModel):
    session_id: str
    messages: list[Message]
    message_count: int
    created_at: datetime
    last_activity: datetime


class ClearHistoryResponse(BaseModel):
    success: bool
    session_id: str

