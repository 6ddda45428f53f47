"""Text normalization and lightweight analysis for extracted legal documents.

Two concerns live here:

1. **Normalization** -- Cleans raw extractor output (PDF text layers,
   DOCX paragraphs, RTF runs) into a consistent form before chunking:
   collapsed intra-line whitespace, no control characters, LF line
   endings, at most one blank line between paragraphs.

2. **Document metadata** -- Character/word/line/paragraph counts plus a
   keyword-based language guess that recognises Dutch case law.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

import structlog

from rechtspraak.models.document import DocumentMetadata

logger = structlog.get_logger(logger_name=__name__)

_HORIZONTAL_WS = re.compile(r"[ \t\f\v\u00a0]+")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_LINE_ENDINGS = re.compile(r"\r\n?")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_EXCESS_BLANK_LINES = re.compile(r"\n\s*\n\s*\n[\s\n]*")

# Terms that mark a text as Dutch case law.  Three distinct hits are
# enough; a single "wet" or "lid" shows up in too many languages.
DUTCH_LEGAL_TERMS: tuple[str, ...] = (
    "rechtspraak",
    "uitspraak",
    "arrest",
    "vonnis",
    "beschikking",
    "hoge raad",
    "gerechtshof",
    "rechtbank",
    "kantonrechter",
    "wet",
    "artikel",
    "lid",
    "onder",
    "wetboek",
    "burgerlijk",
    "strafrecht",
    "bestuursrecht",
    "procesrecht",
)
_DUTCH_TERM_THRESHOLD = 3


def normalize_text(text: str) -> str:
    """Return *text* normalized for chunking.

    Steps, in order: collapse runs of horizontal whitespace to one space,
    strip control characters, unify CRLF/CR to LF, collapse three or more
    line breaks into a single blank line, trim.  Any failure returns the
    input unchanged so extracted content is never lost.
    """
    try:
        cleaned = _HORIZONTAL_WS.sub(" ", text)
        cleaned = _LINE_ENDINGS.sub("\n", cleaned)
        cleaned = _CONTROL_CHARS.sub("", cleaned)
        cleaned = _SPACE_AROUND_NEWLINE.sub("\n", cleaned)
        cleaned = _EXCESS_BLANK_LINES.sub("\n\n", cleaned)
        return cleaned.strip()
    except Exception as exc:  # noqa: BLE001
        logger.warning("text_normalization_failed", error=str(exc), length=len(text))
        return text


def detect_language(text: str) -> str:
    """Return ``"nl"`` when enough Dutch legal terms occur, else ``"unknown"``."""
    lowered = text.lower()
    hits = sum(1 for term in DUTCH_LEGAL_TERMS if re.search(rf"\b{re.escape(term)}\b", lowered))
    return "nl" if hits >= _DUTCH_TERM_THRESHOLD else "unknown"


def extract_metadata(text: str) -> DocumentMetadata:
    """Compute size statistics and a language guess for normalized text."""
    stripped = text.strip()
    paragraphs = [p for p in re.split(r"\n\s*\n", stripped) if p.strip()] if stripped else []
    return DocumentMetadata(
        character_count=len(text),
        word_count=len(stripped.split()) if stripped else 0,
        line_count=len(text.split("\n")) if text else 0,
        paragraph_count=len(paragraphs),
        language=detect_language(text),
        extracted_at=datetime.now(tz=timezone.utc),  # noqa: UP017
    )
