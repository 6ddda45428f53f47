"""File-source provider implementations."""

from rechtspraak.providers.file_source.google_drive_provider import (
    ALLOWED_MIME_TYPES,
    GoogleDriveProvider,
    extract_file_id,
)

__all__ = ["ALLOWED_MIME_TYPES", "GoogleDriveProvider", "extract_file_id"]
