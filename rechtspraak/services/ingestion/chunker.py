"""Fixed-size sliding-window text chunking.

Splits normalized document text into :class:`~rechtspraak.models.document.Chunk`
objects of ``chunk_size`` characters.  Consecutive windows start
``chunk_size - overlap`` characters apart, so every boundary is covered by
two windows and a passage straddling it stays retrievable.

Chunk ids are positional (``chunk_0``, ``chunk_1``, ...) rather than random:
re-ingesting the same text with the same parameters reproduces the same ids,
which makes vector upserts idempotent.
"""

from __future__ import annotations

import structlog

from rechtspraak.models.document import Chunk
from rechtspraak.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


class TextChunker:
    """Splits text into overlapping character windows.

    Parameters
    ----------
    chunk_size:
        Window length in characters (default 1000).
    overlap:
        Characters shared by consecutive windows (default 100).  Must be
        smaller than *chunk_size*.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 100) -> None:
        if chunk_size <= 0:
            raise ConfigurationError(message=f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ConfigurationError(message=f"overlap must not be negative, got {overlap}")
        if overlap >= chunk_size:
            raise ConfigurationError(
                message=f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    @property
    def step(self) -> int:
        return self._chunk_size - self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def window_starts(self, text_length: int) -> list[int]:
        """Return every window start offset for a text of *text_length* characters."""
        return list(range(0, text_length, self.step))

    def chunk(self, text: str, document_id: str = "") -> list[Chunk]:
        """Split *text* into trimmed, non-blank windows.

        Windows that are whitespace-only are dropped and do not consume an
        id, so ids stay dense.  The final window may be shorter than
        ``chunk_size``.
        """
        if not text:
            return []

        text_length = len(text)
        chunks: list[Chunk] = []
        for start in self.window_starts(text_length):
            end = min(start + self._chunk_size, text_length)
            window = text[start:end].strip()
            if not window:
                continue
            index = len(chunks)
            chunks.append(
                Chunk(
                    id=f"chunk_{index}",
                    document_id=document_id,
                    index=index,
                    text=window,
                    start_index=start,
                    end_index=end,
                    length=len(window),
                )
            )

        logger.debug(
            "text_chunked",
            document_id=document_id,
            text_length=text_length,
            chunk_count=len(chunks),
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return chunks
