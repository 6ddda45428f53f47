"""Multi-format text extraction provider.

Format → extractor:

    text/plain        → UTF-8 decode (falls back to cp1252, common in Dutch
                        Word exports)
    application/pdf   → PyMuPDF (fitz), page by page
    DOCX              → python-docx, paragraph text
    application/rtf   → striprtf
    application/msword (legacy DOC) → LibreOffice headless ``--convert-to txt``

PDF, DOCX and RTF parsing is CPU-bound and synchronous, so it runs in a
worker thread.  DOC conversion shells out to LibreOffice through an asyncio
subprocess inside a private temp directory that is always removed.
"""

from __future__ import annotations

import asyncio
import io
import shutil
import tempfile
from pathlib import Path

import docx
import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog
from striprtf.striprtf import rtf_to_text

from rechtspraak.interfaces.text_extraction_provider import ITextExtractionProvider
from rechtspraak.utils.errors import ProviderError, UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

MIME_PLAIN = "text/plain"
MIME_PDF = "application/pdf"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MIME_DOC = "application/msword"
MIME_RTF = "application/rtf"
MIME_RTF_TEXT = "text/rtf"

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(
    {MIME_PLAIN, MIME_PDF, MIME_DOCX, MIME_DOC, MIME_RTF, MIME_RTF_TEXT}
)

_LIBREOFFICE_TIMEOUT = 120.0  # seconds


class DocumentTextExtractionProvider(ITextExtractionProvider):
    """Extracts raw text from plain text, PDF, DOCX, RTF and DOC bytes."""

    def __init__(self, libreoffice_binary: str | None = None) -> None:
        self._libreoffice = libreoffice_binary or shutil.which("libreoffice") or shutil.which("soffice")

    # ------------------------------------------------------------------
    # ITextExtractionProvider implementation
    # ------------------------------------------------------------------

    async def extract_text(self, data: bytes, mime_type: str) -> str:
        normalized_type = (mime_type or "").split(";")[0].strip().lower()
        if normalized_type not in SUPPORTED_MIME_TYPES:
            raise UnsupportedFormatError(
                message=f"Unsupported document format: {mime_type or 'unknown'}",
                provider_name=self.get_provider_name(),
            )

        if normalized_type == MIME_PLAIN:
            return self._decode_plain(data)
        if normalized_type == MIME_DOC:
            return await self._extract_doc(data)

        handlers = {
            MIME_PDF: self._extract_pdf,
            MIME_DOCX: self._extract_docx,
            MIME_RTF: self._extract_rtf,
            MIME_RTF_TEXT: self._extract_rtf,
        }
        try:
            return await asyncio.to_thread(handlers[normalized_type], data)
        except Exception as exc:
            raise ProviderError(
                message=f"Failed to read {normalized_type} document: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def supported_mime_types(self) -> frozenset[str]:
        return SUPPORTED_MIME_TYPES

    def get_provider_name(self) -> str:
        return "document_extractor"

    def is_available(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Format handlers
    # ------------------------------------------------------------------

    @staticmethod
    def _decode_plain(data: bytes) -> str:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError:
            return data.decode("cp1252", errors="replace")

    @staticmethod
    def _extract_pdf(data: bytes) -> str:
        doc = fitz.open(stream=data, filetype="pdf")
        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        finally:
            doc.close()
        logger.debug("pdf_extracted", pages=len(pages))
        return "\n\n".join(pages)

    @staticmethod
    def _extract_docx(data: bytes) -> str:
        document = docx.Document(io.BytesIO(data))
        paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
        logger.debug("docx_extracted", paragraphs=len(paragraphs))
        return "\n\n".join(paragraphs)

    @staticmethod
    def _extract_rtf(data: bytes) -> str:
        content = data.decode("utf-8", errors="replace")
        return rtf_to_text(content)

    async def _extract_doc(self, data: bytes) -> str:
        """Legacy DOC → text via LibreOffice headless conversion."""
        if not self._libreoffice:
            raise ProviderError(
                message="LibreOffice is not installed; legacy .doc files cannot be read",
                provider_name=self.get_provider_name(),
            )

        work_dir = Path(tempfile.mkdtemp(prefix="rechtspraak_doc_"))
        try:
            source = work_dir / "document.doc"
            source.write_bytes(data)
            proc = await asyncio.create_subprocess_exec(
                self._libreoffice, "--headless", "--convert-to", "txt:Text",
                "--outdir", str(work_dir), str(source),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                _, stderr = await asyncio.wait_for(proc.communicate(), timeout=_LIBREOFFICE_TIMEOUT)
            except asyncio.TimeoutError as exc:
                proc.kill()
                raise ProviderError(
                    message="LibreOffice conversion timed out",
                    provider_name=self.get_provider_name(),
                ) from exc

            output = work_dir / "document.txt"
            if proc.returncode != 0 or not output.exists():
                raise ProviderError(
                    message=f"LibreOffice conversion failed: {stderr.decode(errors='replace')[:500]}",
                    provider_name=self.get_provider_name(),
                )
            logger.debug("doc_converted", output=str(output))
            return output.read_text(encoding="utf-8", errors="replace")
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)
