"""Request options and results for the chat orchestrator."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rechtspraak.models.rag import Citation


class ChatOptions(BaseModel):
    """Per-call overrides for retrieval.  ``None`` means "use the configured default"."""

    model_config = ConfigDict(frozen=True)

    max_results: int | None = Field(default=None, ge=1, le=50)
    min_relevance_score: float | None = Field(default=None, ge=0.0, le=1.0)
    document_id: str | None = Field(default=None, description="Restrict retrieval to one document.")

    def to_filter(self) -> dict[str, Any] | None:
        if self.document_id:
            return {"document_id": self.document_id}
        return None


class ChatResult(BaseModel):
    """The answer to one chat turn."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    user_message: str
    answer: str
    citations: list[Citation] = Field(default_factory=list)
    follow_ups: list[str] = Field(default_factory=list)
    turn_number: int = Field(ge=1)
    search_results_count: int = 0
    relevant_results_count: int = 0
    model: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017


class BatchQueryResult(BaseModel):
    """Outcome of one query inside a batch run."""

    model_config = ConfigDict(frozen=True)

    query: str
    success: bool
    result: ChatResult | None = None
    error: str | None = None
