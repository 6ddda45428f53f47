"""Google Drive file-source provider.

Resolves a shareable Google Drive link to a file id, checks the file's
metadata against the mime whitelist and size limit, then streams the
content into the temp directory.  Talks to the Drive v3 REST API over
httpx with an API key, so only files shared as "anyone with the link"
are reachable.

Recognised link shapes::

    https://drive.google.com/file/d/<id>/view?usp=sharing
    https://drive.google.com/open?id=<id>
    https://docs.google.com/document/d/<id>/edit
"""

from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Any

import httpx
import structlog

from rechtspraak.interfaces.file_source_provider import IFileSourceProvider
from rechtspraak.models.document import FileArtifact
from rechtspraak.providers.extraction.document_extractor import (
    MIME_DOC,
    MIME_DOCX,
    MIME_PDF,
    MIME_PLAIN,
    MIME_RTF,
)
from rechtspraak.utils.errors import (
    ProviderError,
    RateLimitedError,
    UnsupportedFormatError,
    ValidationError,
)
from rechtspraak.utils.temp_files import ensure_temp_dir, remove_artifact

logger = structlog.get_logger(logger_name=__name__)

_FILE_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"/file/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"id=([a-zA-Z0-9_-]+)"),
    re.compile(r"/d/([a-zA-Z0-9_-]+)"),
)

ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    {MIME_PDF, MIME_DOCX, MIME_DOC, MIME_PLAIN, MIME_RTF}
)

_SUFFIXES: dict[str, str] = {
    MIME_PDF: ".pdf",
    MIME_DOCX: ".docx",
    MIME_DOC: ".doc",
    MIME_PLAIN: ".txt",
    MIME_RTF: ".rtf",
}

_DEFAULT_TIMEOUT = 60.0  # seconds
_METADATA_FIELDS = "id,name,mimeType,size,createdTime,modifiedTime"


def extract_file_id(link: str) -> str | None:
    """Return the Drive file id embedded in *link*, or ``None``."""
    for pattern in _FILE_ID_PATTERNS:
        match = pattern.search(link)
        if match:
            return match.group(1)
    return None


class GoogleDriveProvider(IFileSourceProvider):
    """Downloads publicly shared Google Drive files to a local temp directory.

    Parameters
    ----------
    api_key:
        Google API key with the Drive API enabled.
    temp_dir:
        Directory downloaded artifacts are written to.
    max_file_size_bytes:
        Files larger than this are rejected before and during download.
    http_client:
        Optional shared ``httpx.AsyncClient``; one is created when omitted.
    base_url:
        Drive v3 API root.
    """

    def __init__(
        self,
        api_key: str,
        temp_dir: str | Path,
        max_file_size_bytes: int = 10 * 1024 * 1024,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = "https://www.googleapis.com/drive/v3",
    ) -> None:
        self._api_key = api_key
        self._temp_dir = Path(temp_dir)
        self._max_size = max_file_size_bytes
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(_DEFAULT_TIMEOUT),
            follow_redirects=True,
        )

    # ------------------------------------------------------------------
    # IFileSourceProvider implementation
    # ------------------------------------------------------------------

    def resolve_reference(self, reference: str) -> str:
        if not reference or not reference.strip():
            raise ValidationError(message="A Google Drive link is required")
        if "drive.google.com" not in reference and "docs.google.com" not in reference:
            raise ValidationError(message="Only Google Drive links are supported")
        file_id = extract_file_id(reference)
        if not file_id:
            raise ValidationError(message="Invalid Google Drive link format")
        return file_id

    async def fetch(self, reference: str) -> FileArtifact:
        file_id = self.resolve_reference(reference)
        if not self._api_key:
            raise ProviderError(
                message="Google Drive API key is not configured",
                provider_name=self.get_provider_name(),
            )

        metadata = await self._get_metadata(file_id)
        mime_type = str(metadata.get("mimeType", ""))
        name = str(metadata.get("name") or f"Document {file_id[:8]}")
        declared_size = int(metadata.get("size") or 0)

        if mime_type not in ALLOWED_MIME_TYPES:
            raise UnsupportedFormatError(
                message=f"Unsupported file type '{mime_type}' for {name}",
                provider_name=self.get_provider_name(),
            )
        if declared_size > self._max_size:
            raise ProviderError(
                message=f"File too large: {declared_size} bytes (limit {self._max_size})",
                provider_name=self.get_provider_name(),
            )

        path = await self._download(file_id, mime_type)
        size = path.stat().st_size
        logger.info(
            "google_drive_file_downloaded",
            file_id=file_id,
            name=name,
            mime_type=mime_type,
            size=size,
        )
        return FileArtifact(
            path=str(path),
            mime_type=mime_type,
            display_name=name,
            size=size,
            file_id=file_id,
        )

    def get_provider_name(self) -> str:
        return "google_drive"

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _get_metadata(self, file_id: str) -> dict[str, Any]:
        try:
            response = await self._client.get(
                f"{self._base_url}/files/{file_id}",
                params={"fields": _METADATA_FIELDS, "key": self._api_key, "supportsAllDrives": "true"},
            )
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"Google Drive error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        self._raise_for_status(response)
        return response.json()

    async def _download(self, file_id: str, mime_type: str) -> Path:
        ensure_temp_dir(self._temp_dir)
        target = self._temp_dir / f"{file_id}_{uuid.uuid4().hex[:8]}{_SUFFIXES.get(mime_type, '')}"
        received = 0
        try:
            async with self._client.stream(
                "GET",
                f"{self._base_url}/files/{file_id}",
                params={"alt": "media", "key": self._api_key, "supportsAllDrives": "true"},
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                self._raise_for_status(response)
                with target.open("wb") as handle:
                    async for block in response.aiter_bytes():
                        received += len(block)
                        if received > self._max_size:
                            raise ProviderError(
                                message=f"File too large: exceeded {self._max_size} bytes during download",
                                provider_name=self.get_provider_name(),
                            )
                        handle.write(block)
        except httpx.HTTPError as exc:
            remove_artifact(target)
            raise ProviderError(
                message=f"Google Drive error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except ProviderError:
            remove_artifact(target)
            raise
        return target

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 403:
            message = (
                "Access denied. Please make sure the file is publicly accessible "
                "or check your API credentials."
            )
        elif status == 404:
            message = "File not found. Please check the Google Drive link."
        elif status == 429:
            raise RateLimitedError(
                message="Google Drive rate limit exceeded",
                provider_name=self.get_provider_name(),
            )
        else:
            message = f"Google Drive error: HTTP {status}"
        raise ProviderError(message=message, provider_name=self.get_provider_name())
