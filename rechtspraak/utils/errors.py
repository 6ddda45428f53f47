"""Custom exception hierarchy for the Rechtspraak assistant.

All application exceptions inherit from :class:`RechtspraakError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "chromadb", "google_drive") caused the
failure.

The hierarchy is organized by where the failure originates:

    RechtspraakError  (base -- catch-all for any application error)
    +-- ValidationError          (missing / blank required input)
    +-- UnsupportedFormatError   (document format not accepted)
    +-- EmptyContentError        (extraction produced no usable text)
    +-- NotFoundError            (unknown session or document)
    +-- ConfigurationError       (startup / invalid config)
    +-- InvalidTransitionError   (ingestion state machine violation)
    +-- ProviderError            (embedding, LLM, vector store, file source)
        +-- RateLimitedError     (provider rate-limit, retried with backoff)
        +-- PartialUpsertError   (upsert aborted after some batches landed)

Callers handle errors at the level they care about -- e.g. retry on
RateLimitedError, report progress on PartialUpsertError, or map the
input-side errors to 4xx responses in the API layer.
"""


class RechtspraakError(Exception):
    """Base exception for all Rechtspraak errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input-side errors
# ---------------------------------------------------------------------------

class ValidationError(RechtspraakError):
    """Raised when required input is missing or blank."""

    def __init__(
        self,
        message: str = "Invalid or missing input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedFormatError(RechtspraakError):
    """Raised when a document's mime type is not supported for extraction."""

    def __init__(
        self,
        message: str = "Unsupported document format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyContentError(RechtspraakError):
    """Raised when text extraction succeeds but yields only whitespace."""

    def __init__(
        self,
        message: str = "Document contains no extractable text",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(RechtspraakError):
    """Raised when a referenced session or document does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(RechtspraakError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidTransitionError(RechtspraakError):
    """Raised when a document status would move backwards or leave a terminal state."""

    def __init__(
        self,
        message: str = "Invalid document status transition",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ProviderError(RechtspraakError):
    """Raised when an embedding, LLM, vector-store, or file-source call fails."""

    def __init__(
        self,
        message: str = "External provider call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitedError(ProviderError):
    """Raised when a provider signals its rate limit was exceeded.

    The embedding client and vector index retry the single failing
    request with exponential backoff; once the retry budget is spent the
    error is surfaced unchanged.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PartialUpsertError(ProviderError):
    """Raised when a vector upsert aborts after some batches were stored.

    ``batches_completed`` and ``records_upserted`` expose how much of the
    upsert landed before the failing batch, since the store is not rolled
    back.
    """

    def __init__(
        self,
        message: str = "Vector upsert aborted",
        provider_name: str | None = None,
        batches_completed: int = 0,
        records_upserted: int = 0,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._batches_completed = batches_completed
        self._records_upserted = records_upserted

    @property
    def batches_completed(self) -> int:
        return self._batches_completed

    @property
    def records_upserted(self) -> int:
        return self._records_upserted
