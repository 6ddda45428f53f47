"""Abstract base class for document text-extraction providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: DocumentTextExtractionProvider
# (rechtspraak/providers/extraction/)
class ITextExtractionProvider(ABC):
    """Contract for turning raw document bytes into plain text.

    Output is raw; normalization happens in
    :class:`~rechtspraak.services.ingestion.text_extractor.TextExtractor`.
    """

    @abstractmethod
    async def extract_text(self, data: bytes, mime_type: str) -> str:
        """Extract the text layer of a document.

        Raises
        ------
        rechtspraak.utils.errors.UnsupportedFormatError
            If *mime_type* is not one of :meth:`supported_mime_types`.
        """

    @abstractmethod
    def supported_mime_types(self) -> frozenset[str]:
        """Return the mime types this provider can extract."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider's parsers are usable."""
