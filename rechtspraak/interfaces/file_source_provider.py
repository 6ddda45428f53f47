"""Abstract base class for external file sources (e.g. Google Drive)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from rechtspraak.models.document import FileArtifact


# Concrete implementation: GoogleDriveProvider (rechtspraak/providers/file_source/)
class IFileSourceProvider(ABC):
    """Contract for resolving a shareable reference into local file content.

    Implementations enforce a maximum file size and a mime-type whitelist
    *before* downloading, so unsupported documents never reach extraction.
    """

    @abstractmethod
    def resolve_reference(self, reference: str) -> str:
        """Validate *reference* and return the provider's file id.

        Raises
        ------
        rechtspraak.utils.errors.ValidationError
            If the reference is blank or not in a recognised format.
        """

    @abstractmethod
    async def fetch(self, reference: str) -> FileArtifact:
        """Download the referenced file into the temp directory.

        The caller owns the returned artifact and must delete
        ``artifact.path`` once extraction is done.

        Raises
        ------
        rechtspraak.utils.errors.UnsupportedFormatError
            If the file's mime type is not whitelisted.
        rechtspraak.utils.errors.ProviderError
            If the file is too large, inaccessible, or the download fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"google_drive"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
