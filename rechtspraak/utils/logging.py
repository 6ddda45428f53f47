"""structlog configuration for the API, the CLI and background ingestion.

Every event goes through one processor chain and ends in a renderer picked
by environment: JSON lines when ``app_env`` is ``"production"``, coloured
console output otherwise.  Each line carries ``service="rechtspraak"`` so
log shipping can separate it from uvicorn's access log.

Third-party loggers (httpx, openai, chromadb) are bridged through the same
formatter but held at WARNING unless the application itself runs at DEBUG;
their per-request INFO lines would otherwise drown the ingestion stages.

:func:`ingestion_context` binds a document id into the context variables
for the duration of a pipeline run, so lines emitted by the embedding and
vector-index layers are attributable without threading the id through.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import Iterator

import structlog

SERVICE_NAME = "rechtspraak"

_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "chromadb", "uvicorn.access")


def _add_service(
    _logger: object, _method: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    *,
    app_env: str | None = None,
    json_output: bool = False,
) -> structlog.BoundLogger:
    """Install the processor chain and bridge stdlib logging into it.

    Parameters
    ----------
    log_level:
        Minimum level for application events (``DEBUG`` .. ``ERROR``).
    app_env:
        Deployment environment; falls back to ``APP_ENV`` and then
        ``"development"``.
    json_output:
        Render JSON regardless of *app_env*.
    """
    level = log_level.upper()
    environment = app_env or os.environ.get("APP_ENV", "development")
    use_json = json_output or environment == "production"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_service,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    third_party_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return structlog.get_logger(logger_name=SERVICE_NAME)


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger named *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


@contextmanager
def ingestion_context(document_id: str) -> Iterator[None]:
    """Bind *document_id* to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(document_id=document_id):
        yield
