"""Domain models -- re-exports all public model classes.

Organized by concern:
    - document.py     : Document record, status machine, chunks, file artifacts
    - rag.py          : Vector records, search results, citations
    - conversation.py : Chat sessions, messages, statistics
    - chat.py         : Chat options and results
"""

from __future__ import annotations

from rechtspraak.models.chat import BatchQueryResult, ChatOptions, ChatResult
from rechtspraak.models.conversation import (
    ChatStats,
    ConversationSession,
    Message,
    MessageRole,
)
from rechtspraak.models.document import (
    Chunk,
    Document,
    DocumentMetadata,
    DocumentStatus,
    FileArtifact,
)
from rechtspraak.models.rag import (
    Citation,
    EnrichedSearchResult,
    SearchResult,
    UpsertResult,
    VectorRecord,
    make_record_id,
)

__all__ = [
    "BatchQueryResult",
    "ChatOptions",
    "ChatResult",
    "ChatStats",
    "Chunk",
    "Citation",
    "ConversationSession",
    "Document",
    "DocumentMetadata",
    "DocumentStatus",
    "EnrichedSearchResult",
    "FileArtifact",
    "Message",
    "MessageRole",
    "SearchResult",
    "UpsertResult",
    "VectorRecord",
    "make_record_id",
]
