"""Utility modules for Rechtspraak.

- **errors** -- exception hierarchy rooted at RechtspraakError; input
  errors, provider errors, and the ingestion state-machine error.
- **logging** -- structlog setup: coloured console output in development,
  JSON in production.
- **retry** -- bounded exponential backoff for rate-limited provider calls.
- **temp_files** -- temp-directory helpers and the periodic stale-file sweeper.
- **text_normalizer** -- whitespace normalization, Dutch legal language
  detection, and document statistics.
"""

# -- Errors ----------------------------------------------------------------
from rechtspraak.utils.errors import (
    ConfigurationError,
    EmptyContentError,
    InvalidTransitionError,
    NotFoundError,
    PartialUpsertError,
    ProviderError,
    RateLimitedError,
    RechtspraakError,
    UnsupportedFormatError,
    ValidationError,
)

# -- Logging ---------------------------------------------------------------
from rechtspraak.utils.logging import configure_logging, get_logger, ingestion_context

# -- Text ------------------------------------------------------------------
from rechtspraak.utils.text_normalizer import (
    detect_language,
    extract_metadata,
    normalize_text,
)

__all__ = [
    "ConfigurationError",
    "EmptyContentError",
    "InvalidTransitionError",
    "NotFoundError",
    "PartialUpsertError",
    "ProviderError",
    "RateLimitedError",
    "RechtspraakError",
    "UnsupportedFormatError",
    "ValidationError",
    "configure_logging",
    "detect_language",
    "extract_metadata",
    "get_logger",
    "ingestion_context",
    "normalize_text",
]
