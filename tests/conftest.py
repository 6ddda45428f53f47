"""Shared pytest fixtures and fake providers for the Rechtspraak test suite.

The fakes implement the provider ABCs directly, so every service under
test runs its real code path against deterministic, offline backends.
"""

from __future__ import annotations

import hashlib
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Iterator

import pytest

from rechtspraak.interfaces.embedding_provider import IEmbeddingProvider
from rechtspraak.interfaces.file_source_provider import IFileSourceProvider
from rechtspraak.interfaces.llm_provider import ILLMProvider
from rechtspraak.models.document import FileArtifact
from rechtspraak.models.rag import SearchResult
from rechtspraak.providers.extraction.document_extractor import (
    MIME_PLAIN,
    DocumentTextExtractionProvider,
)
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
from rechtspraak.utils.errors import ValidationError

# ---------------------------------------------------------------------------
# Sample content
# ---------------------------------------------------------------------------

SAMPLE_RULING = (
    "ECLI:NL:HR:2020:1234. Hoge Raad der Nederlanden, uitspraak in de zaak van "
    "werkgever tegen werknemer.\n\n"
    "De werknemer is op staande voet ontslagen wegens diefstal. Het gerechtshof "
    "heeft geoordeeld dat het ontslag op staande voet rechtsgeldig is gegeven, "
    "omdat sprake was van een dringende reden in de zin van artikel 7:678 van het "
    "Burgerlijk Wetboek.\n\n"
    "De Hoge Raad verwerpt het beroep in cassatie. De dringende reden is onverwijld "
    "aan de werknemer meegedeeld en de werkgever heeft voldoende onderzoek gedaan."
)

SAMPLE_TENANCY = (
    "Rechtbank Amsterdam, vonnis in de zaak over de opzegging van een "
    "huurovereenkomst. De verhuurder heeft de huur opgezegd wegens dringend eigen "
    "gebruik. De kantonrechter wijst de vordering tot ontruiming af omdat de "
    "huurder onvoldoende vervangende woonruimte kan verkrijgen."
)


# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Bag-of-words hashing embedder: texts sharing words point the same way."""

    def __init__(self, dimension: int = 64) -> None:
        self._dimension = dimension
        self.calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(text) for text in texts]

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for word in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self._dimension  # noqa: S324
            vector[bucket] += 1.0
        if not any(vector):
            vector[0] = 1.0
        return vector

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "fake-embedding"

    def is_available(self) -> bool:
        return True


class FakeLLMProvider(ILLMProvider):
    """Returns canned answers and records every prompt it receives."""

    def __init__(
        self,
        answer: str = "Volgens de rechtspraak is het ontslag rechtsgeldig.",
        follow_ups: str = "1. Wat is een dringende reden?\n2. Hoe snel moet ontslag volgen?\n3. Welke rol speelt onderzoek?",
    ) -> None:
        self.answer = answer
        self.follow_ups = follow_ups
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if user_prompt.startswith("Gebaseerd op de volgende vraag"):
            return self.follow_ups
        return self.answer

    def get_model_name(self) -> str:
        return "fake-model"

    def get_provider_name(self) -> str:
        return "fake-llm"

    def is_available(self) -> bool:
        return True


class FakeFileSource(IFileSourceProvider):
    """Serves in-memory documents keyed by Drive-style links."""

    def __init__(self, temp_dir: Path) -> None:
        self._temp_dir = temp_dir
        self.files: dict[str, tuple[str, bytes, str]] = {}
        self.fetched_paths: list[Path] = []

    def add(self, file_id: str, name: str, content: bytes, mime_type: str = MIME_PLAIN) -> str:
        self.files[file_id] = (name, content, mime_type)
        return f"https://drive.google.com/file/d/{file_id}/view"

    def resolve_reference(self, reference: str) -> str:
        match = re.search(r"/file/d/([\w-]+)", reference or "")
        if not match:
            raise ValidationError(message="Invalid Google Drive link format")
        return match.group(1)

    async def fetch(self, reference: str) -> FileArtifact:
        file_id = self.resolve_reference(reference)
        name, content, mime_type = self.files[file_id]
        self._temp_dir.mkdir(parents=True, exist_ok=True)
        path = self._temp_dir / f"{file_id}.bin"
        path.write_bytes(content)
        self.fetched_paths.append(path)
        return FileArtifact(
            path=str(path),
            mime_type=mime_type,
            display_name=name,
            size=len(content),
            file_id=file_id,
        )

    def get_provider_name(self) -> str:
        return "fake-drive"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_result(
    score: float,
    chunk_id: str = "chunk_0",
    document_id: str = "doc-1",
    document_name: str = "Hoge Raad 2020",
    text: str = "De dringende reden is onverwijld meegedeeld.",
) -> SearchResult:
    return SearchResult(
        chunk_id=chunk_id,
        document_id=document_id,
        document_name=document_name,
        text=text,
        score=score,
    )


def build_assistant(
    temp_dir: Path,
    *,
    llm: ILLMProvider | None = None,
    embedding_provider: IEmbeddingProvider | None = None,
    chunk_size: int = 200,
    overlap: int = 40,
) -> dict[str, Any]:
    """Wire the full service graph over fakes and the in-memory store."""
    embedding_provider = embedding_provider or FakeEmbeddingProvider()
    llm = llm or FakeLLMProvider()
    vector_store = InMemoryVectorStoreProvider()
    file_source = FakeFileSource(temp_dir)

    embedder = EmbeddingClient(embedding_provider, inter_batch_delay=0.0, base_backoff=0.0)
    index = VectorIndex(vector_store, inter_batch_delay=0.0, base_backoff=0.0)
    documents = DocumentStore()
    conversations = ConversationStore(history_limit=10, active_window=timedelta(hours=1))

    ingestion = IngestionService(
        documents=documents,
        file_source=file_source,
        extractor=TextExtractor(DocumentTextExtractionProvider()),
        chunker=TextChunker(chunk_size=chunk_size, overlap=overlap),
        embedder=embedder,
        index=index,
    )
    chat = ChatService(
        embedder=embedder,
        index=index,
        llm=llm,
        conversations=conversations,
        min_relevance_score=0.1,
        batch_delay=0.0,
    )
    search = SearchService(embedder=embedder, index=index)
    assistant = LegalAssistant(
        documents=documents,
        conversations=conversations,
        ingestion=ingestion,
        chat=chat,
        search=search,
        index=index,
    )
    return {
        "assistant": assistant,
        "ingestion": ingestion,
        "documents": documents,
        "conversations": conversations,
        "vector_store": vector_store,
        "vector_index": index,
        "file_source": file_source,
        "llm": llm,
        "embedding_provider": embedding_provider,
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def fake_llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def memory_store() -> InMemoryVectorStoreProvider:
    return InMemoryVectorStoreProvider()


@pytest.fixture
def conversation_store() -> Iterator[ConversationStore]:
    store = ConversationStore(history_limit=10)
    yield store
    store.reset()


@pytest.fixture
def document_store() -> Iterator[DocumentStore]:
    store = DocumentStore()
    yield store
    store.reset()


@pytest.fixture
def components(tmp_path: Path) -> dict[str, Any]:
    """A fully wired assistant over fakes; temp artifacts go under *tmp_path*."""
    return build_assistant(tmp_path / "artifacts")
