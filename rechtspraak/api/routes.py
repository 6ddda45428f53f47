"""FastAPI routes for the Rechtspraak assistant.

Endpoint                              Method  Description
-----------------------------------------------------------------------
/api/v1/health                        GET     Health check + provider status
/api/v1/documents                     POST    Register a Drive link for ingestion
/api/v1/documents                     GET     List documents, newest first
/api/v1/documents/{id}                GET     Document status and detail
/api/v1/documents/{id}                DELETE  Delete a document and its vectors
/api/v1/chat                          POST    One chat turn (RAG answer)
/api/v1/chat/batch                    POST    Answer several questions
/api/v1/chat/history/{sid}            GET     Session history
/api/v1/chat/history/{sid}            DELETE  Clear a session
/api/v1/chat/search                   POST    Semantic search with labels
/api/v1/chat/stats                    GET     Conversation statistics

Service dependencies are read from ``app.state`` (filled by
``main._build_all``) through ``Annotated[..., Depends(...)]`` aliases.
Application errors propagate to ``ErrorHandlingMiddleware``.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from rechtspraak.api.schemas import (
    BatchChatRequest,
    BatchChatResponse,
    ChatHistoryResponse,
    ChatRequest,
    ClearHistoryResponse,
    DeleteDocumentResponse,
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentSummary,
    HealthResponse,
    IngestDocumentRequest,
    IngestDocumentResponse,
    SearchRequest,
    SearchResponse,
)
from rechtspraak.models.chat import ChatOptions, ChatResult
from rechtspraak.models.conversation import ChatStats
from rechtspraak.services.assistant import LegalAssistant
from rechtspraak.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


def _get_assistant(request: Request) -> LegalAssistant:
    """Return the assistant facade from application state."""
    return request.app.state.assistant


AssistantDep = Annotated[LegalAssistant, Depends(_get_assistant)]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))

    index = getattr(request.app.state, "vector_index", None)
    if index is not None:
        try:
            providers["vector_count"] = await index.count()
            providers["vector_store"] = True
        except Exception:  # noqa: BLE001
            providers["vector_store"] = False
            providers["vector_count"] = 0

    critical = ("llm", "embedding", "vector_store")
    if all(providers.get(name, False) for name in critical):
        status = "healthy"
    elif providers.get("vector_store", False):
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(status=status, version=_VERSION, providers=providers)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents",
    response_model=IngestDocumentResponse,
    status_code=202,
    summary="Register a Google Drive document for ingestion",
)
async def ingest_document(
    body: IngestDocumentRequest,
    assistant: AssistantDep,
) -> IngestDocumentResponse:
    result = assistant.ingest_document(body.google_drive_link)
    _logger.info("document_ingest_requested", document_id=result["document_id"])
    return IngestDocumentResponse(document_id=result["document_id"], status=result["status"])


@router.get("/documents", response_model=DocumentListResponse, summary="List documents")
async def list_documents(assistant: AssistantDep) -> DocumentListResponse:
    documents = [
        DocumentSummary.model_validate(document, from_attributes=True)
        for document in assistant.list_documents()
    ]
    return DocumentListResponse(documents=documents, total=len(documents))


@router.get(
    "/documents/{document_id}",
    response_model=DocumentDetailResponse,
    summary="Document status and detail",
)
async def get_document(document_id: str, assistant: AssistantDep) -> DocumentDetailResponse:
    document = assistant.get_document(document_id)
    return DocumentDetailResponse.model_validate(document, from_attributes=True)


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteDocumentResponse,
    summary="Delete a document and its vectors",
)
async def delete_document(document_id: str, assistant: AssistantDep) -> DeleteDocumentResponse:
    success = await assistant.delete_document(document_id)
    return DeleteDocumentResponse(success=success, document_id=document_id)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post("/chat", response_model=ChatResult, summary="Ask a question about the case law")
async def chat(body: ChatRequest, assistant: AssistantDep) -> ChatResult:
    return await assistant.send_message(body.session_id, body.message, body.to_options())


@router.post("/chat/batch", response_model=BatchChatResponse, summary="Answer several questions")
async def chat_batch(body: BatchChatRequest, assistant: AssistantDep) -> BatchChatResponse:
    results = await assistant.process_batch(
        body.queries, ChatOptions(max_results=body.max_results)
    )
    return BatchChatResponse(
        results=results,
        total=len(results),
        succeeded=sum(1 for r in results if r.success),
    )


@router.get(
    "/chat/history/{session_id}",
    response_model=ChatHistoryResponse,
    summary="Conversation history for a session",
)
async def get_history(session_id: str, assistant: AssistantDep) -> ChatHistoryResponse:
    session = assistant.get_history(session_id)
    return ChatHistoryResponse(
        session_id=session.session_id,
        messages=session.messages,
        message_count=session.message_count,
        created_at=session.created_at,
        last_activity=session.last_activity,
    )


@router.delete(
    "/chat/history/{session_id}",
    response_model=ClearHistoryResponse,
    summary="Clear a session",
)
async def clear_history(session_id: str, assistant: AssistantDep) -> ClearHistoryResponse:
    result = assistant.clear_history(session_id)
    if not result["success"]:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return ClearHistoryResponse(**result)


@router.post("/chat/search", response_model=SearchResponse, summary="Semantic search")
async def search(body: SearchRequest, assistant: AssistantDep) -> SearchResponse:
    options = ChatOptions(max_results=body.limit, document_id=body.document_id)
    results = await assistant.search_documents(body.query, options)
    return SearchResponse(query=body.query, results=results, total=len(results))


@router.get("/chat/stats", response_model=ChatStats, summary="Conversation statistics")
async def chat_stats(assistant: AssistantDep) -> ChatStats:
    return assistant.get_stats()
