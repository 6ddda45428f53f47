"""Raw bytes → normalized plain text.

:class:`TextExtractor` is the ingestion pipeline's single entry point for
turning a downloaded file into text.  It rejects undeclared formats before
touching the bytes, delegates parsing to an
:class:`~rechtspraak.interfaces.text_extraction_provider.ITextExtractionProvider`,
normalizes the result, and refuses documents with no usable text.
"""

from __future__ import annotations

import structlog

from rechtspraak.interfaces.text_extraction_provider import ITextExtractionProvider
from rechtspraak.models.document import DocumentMetadata
from rechtspraak.utils.errors import EmptyContentError, UnsupportedFormatError
from rechtspraak.utils.text_normalizer import extract_metadata, normalize_text

logger = structlog.get_logger(logger_name=__name__)


class TextExtractor:
    """Extracts and normalizes document text.

    Parameters
    ----------
    provider:
        Format-aware extraction backend.
    """

    def __init__(self, provider: ITextExtractionProvider) -> None:
        self._provider = provider

    @property
    def supported_mime_types(self) -> frozenset[str]:
        return self._provider.supported_mime_types()

    def is_supported(self, declared_format: str) -> bool:
        return self._base_type(declared_format) in self.supported_mime_types

    async def extract(self, data: bytes, declared_format: str) -> str:
        """Return normalized text for *data* in *declared_format*.

        Raises
        ------
        UnsupportedFormatError
            If the format is not declared as supported.
        EmptyContentError
            If extraction yields only whitespace.
        """
        if not self.is_supported(declared_format):
            raise UnsupportedFormatError(
                message=f"Unsupported document format: {declared_format or 'unknown'}",
                provider_name=self._provider.get_provider_name(),
            )

        raw = await self._provider.extract_text(data, self._base_type(declared_format))
        text = normalize_text(raw)
        if not text.strip():
            raise EmptyContentError(
                message="Document contains no extractable text",
                provider_name=self._provider.get_provider_name(),
            )

        logger.info(
            "text_extracted",
            mime_type=declared_format,
            raw_length=len(raw),
            normalized_length=len(text),
        )
        return text

    @staticmethod
    def describe(text: str) -> DocumentMetadata:
        """Return counts and a language guess for extracted text."""
        return extract_metadata(text)

    @staticmethod
    def _base_type(declared_format: str) -> str:
        return (declared_format or "").split(";")[0].strip().lower()
