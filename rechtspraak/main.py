"""Rechtspraak FastAPI application entry point.

Wires providers, services, and routes together by constructor injection.
Configuration comes from the environment / ``.env`` via :class:`Settings`;
provider choice is explicit (``LLM_PROVIDER``, ``EMBEDDING_PROVIDER``,
``VECTOR_STORE_PROVIDER``) and an unknown name fails at startup.

``_build_all`` is shared with the CLI so both surfaces run the exact same
object graph.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from rechtspraak.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from rechtspraak.api.routes import router as api_router
from rechtspraak.config.settings import Settings
from rechtspraak.interfaces.embedding_provider import IEmbeddingProvider
from rechtspraak.interfaces.llm_provider import ILLMProvider
from rechtspraak.interfaces.vector_store_provider import IVectorStoreProvider
from rechtspraak.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from rechtspraak.providers.extraction.document_extractor import DocumentTextExtractionProvider
from rechtspraak.providers.file_source.google_drive_provider import GoogleDriveProvider
from rechtspraak.providers.llm.openai_provider import OpenAILLMProvider
from rechtspraak.providers.vector_store.chromadb_provider import ChromaDBProvider
from rechtspraak.providers.vector_store.memory_provider import InMemoryVectorStoreProvider
from rechtspraak.services.assistant import LegalAssistant
from rechtspraak.services.chat_service import ChatService
from rechtspraak.services.conversation_store import ConversationStore
from rechtspraak.services.document_store import DocumentStore
from rechtspraak.services.embedding_client import EmbeddingClient
from rechtspraak.services.ingestion.chunker import TextChunker
from rechtspraak.services.ingestion.ingestion_service import IngestionService
from rechtspraak.services.ingestion.text_extractor import TextExtractor
from rechtspraak.services.search_service import SearchService
from rechtspraak.services.vector_index import VectorIndex
from rechtspraak.utils.errors import ConfigurationError
from rechtspraak.utils.logging import configure_logging, get_logger
from rechtspraak.utils.temp_files import TempFileSweeper, ensure_temp_dir

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(log_level=settings.log_level, app_env=settings.app_env)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    if app_settings.llm_provider == "openai":
        return OpenAILLMProvider(settings=app_settings)
    raise ConfigurationError(message=f"Unknown LLM provider: {app_settings.llm_provider!r}")


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    if app_settings.embedding_provider == "openai":
        return OpenAIEmbeddingProvider(settings=app_settings)
    raise ConfigurationError(
        message=f"Unknown embedding provider: {app_settings.embedding_provider!r}"
    )


def _build_vector_store(app_settings: Settings) -> IVectorStoreProvider:
    """Return the configured vector store (``chromadb`` or ``memory``)."""
    if app_settings.vector_store_provider == "chromadb":
        return ChromaDBProvider(
            persist_directory=app_settings.chromadb_persist_dir,
            collection_name=app_settings.chromadb_collection,
        )
    if app_settings.vector_store_provider == "memory":
        return InMemoryVectorStoreProvider(collection_name=app_settings.chromadb_collection)
    raise ConfigurationError(
        message=f"Unknown vector store provider: {app_settings.vector_store_provider!r}"
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.

    Raises
    ------
    ConfigurationError
        If a provider name or the chunking parameters are invalid.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=30.0, follow_redirects=True)
    temp_dir = ensure_temp_dir(app_settings.temp_dir)

    # -- Providers --
    llm = _build_llm_provider(app_settings)
    embedding_provider = _build_embedding_provider(app_settings)
    vector_store = _build_vector_store(app_settings)
    extraction_provider = DocumentTextExtractionProvider()
    file_source = GoogleDriveProvider(
        api_key=app_settings.google_drive_api_key,
        temp_dir=temp_dir,
        max_file_size_bytes=app_settings.max_file_size_bytes,
        http_client=http_client,
        base_url=app_settings.google_drive_base_url,
    )

    # -- Pipeline building blocks --
    embedder = EmbeddingClient(
        embedding_provider,
        batch_size=app_settings.embedding_batch_size,
        inter_batch_delay=app_settings.inter_batch_delay_seconds,
        max_retries=app_settings.rate_limit_max_retries,
        base_backoff=app_settings.rate_limit_backoff_seconds,
    )
    vector_index = VectorIndex(
        vector_store,
        batch_size=app_settings.upsert_batch_size,
        inter_batch_delay=app_settings.inter_batch_delay_seconds,
        max_retries=app_settings.rate_limit_max_retries,
        base_backoff=app_settings.rate_limit_backoff_seconds,
    )
    chunker = TextChunker(
        chunk_size=app_settings.chunk_size,
        overlap=app_settings.chunk_overlap,
    )
    extractor = TextExtractor(extraction_provider)

    # -- State --
    documents = DocumentStore()
    conversations = ConversationStore(
        history_limit=app_settings.conversation_history_limit,
        active_window=timedelta(minutes=app_settings.active_session_window_minutes),
    )

    # -- Services --
    ingestion = IngestionService(
        documents=documents,
        file_source=file_source,
        extractor=extractor,
        chunker=chunker,
        embedder=embedder,
        index=vector_index,
    )
    chat = ChatService(
        embedder=embedder,
        index=vector_index,
        llm=llm,
        conversations=conversations,
        max_search_results=app_settings.max_search_results,
        min_relevance_score=app_settings.min_relevance_score,
        max_context_length=app_settings.max_context_length,
        answer_temperature=app_settings.answer_temperature,
        answer_max_tokens=app_settings.answer_max_tokens,
    )
    search = SearchService(
        embedder=embedder,
        index=vector_index,
        default_limit=app_settings.max_search_results,
    )
    assistant = LegalAssistant(
        documents=documents,
        conversations=conversations,
        ingestion=ingestion,
        chat=chat,
        search=search,
        index=vector_index,
    )

    sweeper = TempFileSweeper(
        temp_dir,
        interval_seconds=app_settings.temp_sweep_interval_seconds,
        max_age_seconds=app_settings.temp_max_age_seconds,
    )

    provider_registry: dict[str, Any] = {
        "llm": llm.is_available(),
        "llm_name": llm.get_provider_name(),
        "embedding": embedding_provider.is_available(),
        "embedding_name": embedding_provider.get_provider_name(),
        "vector_store_name": vector_store.get_provider_name(),
        "file_source": file_source.is_available(),
        "extraction": extraction_provider.is_available(),
    }

    return {
        "http_client": http_client,
        "file_source": file_source,
        "vector_index": vector_index,
        "documents": documents,
        "conversations": conversations,
        "ingestion": ingestion,
        "chat": chat,
        "search": search,
        "assistant": assistant,
        "sweeper": sweeper,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build all services and start the temp sweeper.

    On shutdown the sweeper stops and in-flight ingestion is drained before
    the shared HTTP client closes.
    """
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    sweeper: TempFileSweeper = components["sweeper"]
    sweeper.start()

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        providers=settings.get_configured_providers(),
    )

    yield

    await sweeper.stop()
    ingestion: IngestionService = components["ingestion"]
    pending = ingestion.pending_count
    await ingestion.drain()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", ingestion_tasks_drained=pending)


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Rechtspraak API",
        version=_VERSION,
        description=(
            "Ingest Dutch case law from Google Drive, search it semantically, "
            "and ask questions answered with citations to the source rulings."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.cors_origins)

    application.include_router(api_router)
    return application


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "rechtspraak.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
