"""Public interface definitions for all external service providers.

Every external capability -- embedding, generation, vector storage, text
extraction, file download -- is reached through the abstract base classes
in this package.  Concrete adapters live in ``rechtspraak/providers/`` and
are chosen explicitly by configuration in ``rechtspraak/main.py``; tests
inject fakes implementing the same interfaces.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations
    ─────────────────────────────────────────────────────────────────────
    ILLMProvider               →  OpenAILLMProvider
    IEmbeddingProvider         →  OpenAIEmbeddingProvider
    IVectorStoreProvider       →  ChromaDBProvider, InMemoryVectorStoreProvider
    ITextExtractionProvider    →  DocumentTextExtractionProvider
    IFileSourceProvider        →  GoogleDriveProvider
"""

from rechtspraak.interfaces.embedding_provider import IEmbeddingProvider
from rechtspraak.interfaces.file_source_provider import IFileSourceProvider
from rechtspraak.interfaces.llm_provider import ILLMProvider
from rechtspraak.interfaces.text_extraction_provider import ITextExtractionProvider
from rechtspraak.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "IFileSourceProvider",
    "ILLMProvider",
    "ITextExtractionProvider",
    "IVectorStoreProvider",
]
