"""Conversation state models for chat sessions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single chat message."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)


class ConversationSession(BaseModel):
    """Bounded message history for one session id.

    Messages are appended in user/assistant pairs by
    :class:`~rechtspraak.services.conversation_store.ConversationStore`,
    which also enforces the retention cap.
    """

    session_id: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    last_activity: datetime = Field(default_factory=_utcnow)

    @property
    def message_count(self) -> int:
        return len(self.messages)


class ChatStats(BaseModel):
    """Aggregate statistics over all live sessions."""

    model_config = ConfigDict(frozen=True)

    total_sessions: int = 0
    active_sessions: int = 0
    total_messages: int = 0
    average_messages_per_session: int = 0
    oldest_session: datetime | None = None
    newest_session: datetime | None = None
