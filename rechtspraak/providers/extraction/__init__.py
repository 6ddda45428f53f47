"""Text extraction provider implementations."""

from rechtspraak.providers.extraction.document_extractor import (
    SUPPORTED_MIME_TYPES,
    DocumentTextExtractionProvider,
)

__all__ = ["DocumentTextExtractionProvider", "SUPPORTED_MIME_TYPES"]
