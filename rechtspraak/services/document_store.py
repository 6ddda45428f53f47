"""In-memory registry of ingested documents and their status machine.

The store is the only place a :class:`Document` status changes.
:meth:`DocumentStore.transition` enforces the forward-only sequence::

    pending -> downloading -> extracting -> chunking -> vectorizing -> completed

Any non-terminal status may jump to ``error``.  Moving backwards,
re-entering the current status, skipping ahead, or leaving a terminal
status raises :class:`InvalidTransitionError`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from rechtspraak.models.document import STATUS_ORDER, Document, DocumentStatus
from rechtspraak.utils.errors import InvalidTransitionError

logger = structlog.get_logger(logger_name=__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def is_valid_transition(current: DocumentStatus, target: DocumentStatus) -> bool:
    """Return whether *current* may move to *target*."""
    if current.is_terminal:
        return False
    if target is DocumentStatus.ERROR:
        return True
    return STATUS_ORDER[target] == STATUS_ORDER[current] + 1


class DocumentStore:
    """Holds every known :class:`Document`, keyed by id."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, document: Document) -> Document:
        self._documents[document.id] = document
        return document

    def get(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def list(self) -> list[Document]:
        """Return all documents, newest first."""
        return sorted(self._documents.values(), key=lambda d: d.created_at, reverse=True)

    def remove(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None

    def transition(
        self,
        document_id: str,
        target: DocumentStatus,
        *,
        error: str | None = None,
        **updates: Any,
    ) -> Document:
        """Move a document to *target* and apply field *updates*.

        Parameters
        ----------
        document_id:
            Id of a document previously passed to :meth:`add`.
        target:
            The next status.
        error:
            Failure message; required context for ``error`` and ignored
            for every other status.
        **updates:
            Document fields to set alongside the status change
            (e.g. ``name``, ``chunk_count``).

        Raises
        ------
        KeyError
            If the document is unknown.
        InvalidTransitionError
            If the move violates the forward-only sequence.
        """
        document = self._documents[document_id]
        current = document.status
        if not is_valid_transition(current, target):
            raise InvalidTransitionError(
                message=f"Document {document_id} cannot move from {current.value} to {target.value}"
            )

        for field, value in updates.items():
            setattr(document, field, value)

        now = _utcnow()
        document.status = target
        document.updated_at = now
        if target is DocumentStatus.ERROR:
            document.error = error or "Unknown error"
            document.error_at = now
        elif target is DocumentStatus.COMPLETED:
            document.completed_at = now

        logger.info(
            "document_status_changed",
            document_id=document_id,
            from_status=current.value,
            to_status=target.value,
        )
        return document

    def update(self, document_id: str, **updates: Any) -> Document:
        """Set fields on a document without changing its status."""
        document = self._documents[document_id]
        for field, value in updates.items():
            setattr(document, field, value)
        document.updated_at = _utcnow()
        return document

    def reset(self) -> None:
        self._documents.clear()

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._documents
