"""The assistant's public entry points.

:class:`LegalAssistant` is the one object the HTTP routes and the CLI talk
to.  It owns no logic of its own beyond id generation and not-found
checks; every operation delegates to the ingestion, chat, search or
storage service that implements it.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog

from rechtspraak.models.chat import BatchQueryResult, ChatOptions, ChatResult
from rechtspraak.models.conversation import ChatStats, ConversationSession
from rechtspraak.models.document import Document
from rechtspraak.models.rag import EnrichedSearchResult
from rechtspraak.services.chat_service import ChatService
from rechtspraak.services.conversation_store import ConversationStore
from rechtspraak.services.document_store import DocumentStore
from rechtspraak.services.ingestion.ingestion_service import IngestionService
from rechtspraak.services.search_service import SearchService
from rechtspraak.services.vector_index import VectorIndex
from rechtspraak.utils.errors import NotFoundError

logger = structlog.get_logger(logger_name=__name__)


class LegalAssistant:
    """Facade over document ingestion, chat, and search."""

    def __init__(
        self,
        documents: DocumentStore,
        conversations: ConversationStore,
        ingestion: IngestionService,
        chat: ChatService,
        search: SearchService,
        index: VectorIndex,
    ) -> None:
        self._documents = documents
        self._conversations = conversations
        self._ingestion = ingestion
        self._chat = chat
        self._search = search
        self._index = index

    @property
    def ingestion(self) -> IngestionService:
        return self._ingestion

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def ingest_document(self, source_ref: str) -> dict[str, Any]:
        """Start ingesting *source_ref*; returns ``{document_id, status}`` immediately."""
        document = self._ingestion.register(source_ref)
        return {"document_id": document.id, "status": document.status.value}

    def get_document(self, document_id: str) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise NotFoundError(message=f"Document not found: {document_id}")
        return document

    def list_documents(self) -> list[Document]:
        return self._documents.list()

    async def delete_document(self, document_id: str) -> bool:
        """Delete a document's record, then its vectors.

        The record goes first so a pipeline still running for the document
        sees the removal and purges whatever it upserts afterwards.

        Raises
        ------
        NotFoundError
            If the document is unknown.
        """
        self.get_document(document_id)
        self._documents.remove(document_id)
        deleted_vectors = await self._index.delete_by_document(document_id)
        logger.info(
            "document_deleted",
            document_id=document_id,
            vectors_deleted=deleted_vectors,
        )
        return True

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def send_message(
        self,
        session_id: str | None,
        text: str,
        options: ChatOptions | None = None,
    ) -> ChatResult:
        return await self._chat.handle(session_id or str(uuid.uuid4()), text, options)

    def get_history(self, session_id: str) -> ConversationSession:
        """Return the session's history, starting an empty session if needed."""
        return self._conversations.get(session_id)

    def clear_history(self, session_id: str) -> dict[str, Any]:
        success = self._conversations.clear(session_id)
        if success:
            self._chat.forget_session(session_id)
        return {"success": success, "session_id": session_id}

    async def search_documents(
        self,
        query: str,
        options: ChatOptions | None = None,
    ) -> list[EnrichedSearchResult]:
        return await self._search.search(query, options)

    def get_stats(self) -> ChatStats:
        return self._conversations.stats()

    async def process_batch(
        self,
        queries: list[str],
        options: ChatOptions | None = None,
    ) -> list[BatchQueryResult]:
        return await self._chat.process_batch(queries, options)
