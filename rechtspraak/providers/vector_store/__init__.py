"""Vector store provider implementations.

ChromaDB is the persistent implementation (cosine space, on-disk at
CHROMADB_PERSIST_DIR).  The numpy-backed in-memory store serves local
development and tests.  main.py picks one from ``VECTOR_STORE_PROVIDER``.
"""

from rechtspraak.providers.vector_store.chromadb_provider import ChromaDBProvider
from rechtspraak.providers.vector_store.memory_provider import InMemoryVectorStoreProvider

__all__ = ["ChromaDBProvider", "InMemoryVectorStoreProvider"]
