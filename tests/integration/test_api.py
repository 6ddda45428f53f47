"""Integration tests for the FastAPI endpoints using TestClient.

The app is assembled the way ``main.create_app`` does it, but with the
service graph from ``tests.conftest.build_assistant`` (fake providers and
the in-memory vector store) placed on ``app.state`` directly.  Clients are
used as context managers so ingestion tasks keep running on the portal's
event loop between requests.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rechtspraak.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from rechtspraak.api.routes import router as api_router
from rechtspraak.utils.errors import ProviderError, RateLimitedError
from tests.conftest import SAMPLE_RULING, SAMPLE_TENANCY, FakeLLMProvider, build_assistant


class _UnavailableLLM(FakeLLMProvider):
    async def complete(self, system_prompt, user_prompt, temperature=0.3, max_tokens=1000):
        raise ProviderError("upstream returned 503", provider_name="fake-llm")


class _RateLimitedLLM(FakeLLMProvider):
    async def complete(self, system_prompt, user_prompt, temperature=0.3, max_tokens=1000):
        raise RateLimitedError(provider_name="fake-llm")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_test_app(
    tmp_path: Path,
    *,
    llm: FakeLLMProvider | None = None,
    registry: dict[str, Any] | None = None,
) -> tuple[FastAPI, dict[str, Any]]:
    components = build_assistant(tmp_path / "artifacts", llm=llm)

    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router)

    app.state.assistant = components["assistant"]
    app.state.vector_index = components["vector_index"]
    app.state.provider_registry = registry or {
        "llm": True,
        "llm_name": "fake-llm",
        "embedding": True,
        "embedding_name": "fake-embedding",
        "vector_store_name": "memory",
        "file_source": True,
        "extraction": True,
    }
    return app, components


def _wait_until_finished(client: TestClient, document_id: str, timeout: float = 10.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        body = client.get(f"/api/v1/documents/{document_id}").json()
        if body["status"] in ("completed", "error"):
            return body
        if time.monotonic() > deadline:
            raise AssertionError(f"document {document_id} stuck in {body['status']}")
        time.sleep(0.02)


def _ingest(client: TestClient, components: dict[str, Any], file_id: str, name: str, text: str) -> dict:
    link = components["file_source"].add(file_id, name, text.encode())
    response = client.post("/api/v1/documents", json={"google_drive_link": link})
    assert response.status_code == 202
    return _wait_until_finished(client, response.json()["document_id"])


@pytest.fixture
def api(tmp_path: Path) -> Iterator[tuple[TestClient, dict[str, Any]]]:
    app, components = _create_test_app(tmp_path)
    with TestClient(app) as client:
        yield client, components


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_healthy(self, api) -> None:
        client, _ = api
        body = client.get("/api/v1/health").json()

        assert body["status"] == "healthy"
        assert body["version"] == "0.1.0"
        assert body["providers"]["vector_count"] == 0
        assert body["providers"]["vector_store"] is True

    def test_degraded_without_llm(self, tmp_path: Path) -> None:
        app, _ = _create_test_app(
            tmp_path, registry={"llm": False, "embedding": True, "vector_store_name": "memory"}
        )
        with TestClient(app) as client:
            assert client.get("/api/v1/health").json()["status"] == "degraded"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class TestDocuments:
    def test_ingest_returns_202_pending(self, api) -> None:
        client, components = api
        link = components["file_source"].add("hr2020", "Arrest Hoge Raad.txt", SAMPLE_RULING.encode())

        response = client.post("/api/v1/documents", json={"google_drive_link": link})

        assert response.status_code == 202
        body = response.json()
        assert body["status"] == "pending"
        assert body["message"] == "Document processing started"
        _wait_until_finished(client, body["document_id"])

    def test_ingest_completes_and_is_listed(self, api) -> None:
        client, components = api
        detail = _ingest(client, components, "hr2020", "Arrest Hoge Raad.txt", SAMPLE_RULING)

        assert detail["status"] == "completed"
        assert detail["name"] == "Arrest Hoge Raad.txt"
        assert detail["chunk_count"] > 0
        assert detail["vectors_upserted"] == detail["chunk_count"]
        assert detail["metadata"]["language"] == "nl"
        assert "content" not in detail

        listing = client.get("/api/v1/documents").json()
        assert listing["total"] == 1
        assert listing["documents"][0]["id"] == detail["id"]

    def test_invalid_link_is_400(self, api) -> None:
        client, _ = api
        response = client.post("/api/v1/documents", json={"google_drive_link": "https://example.com/x"})

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_missing_link_is_422(self, api) -> None:
        client, _ = api
        assert client.post("/api/v1/documents", json={}).status_code == 422

    def test_empty_document_ends_in_error(self, api) -> None:
        client, components = api
        detail = _ingest(client, components, "leeg", "leeg.txt", "   ")

        assert detail["status"] == "error"
        assert "no extractable text" in detail["error"]
        assert detail["chunk_count"] == 0

    def test_unknown_document_is_404(self, api) -> None:
        client, _ = api
        response = client.get("/api/v1/documents/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {
            "error": "NotFoundError",
            "detail": "Document not found: does-not-exist",
        }

    def test_delete_removes_vectors_and_record(self, api) -> None:
        client, components = api
        detail = _ingest(client, components, "hr2020", "arrest.txt", SAMPLE_RULING)

        response = client.delete(f"/api/v1/documents/{detail['id']}")

        assert response.json() == {"success": True, "document_id": detail["id"]}
        assert client.get(f"/api/v1/documents/{detail['id']}").status_code == 404
        assert client.get("/api/v1/health").json()["providers"]["vector_count"] == 0

    def test_delete_unknown_is_404(self, api) -> None:
        client, _ = api
        assert client.delete("/api/v1/documents/nope").status_code == 404


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class TestChat:
    def test_answer_with_citations(self, api) -> None:
        client, components = api
        _ingest(client, components, "hr2020", "Arrest Hoge Raad.txt", SAMPLE_RULING)

        response = client.post(
            "/api/v1/chat",
            json={"message": "Is ontslag op staande voet wegens diefstal rechtsgeldig?"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == components["llm"].answer
        assert body["turn_number"] == 1
        assert body["session_id"]
        assert body["citations"][0]["id"] == 1
        assert body["citations"][0]["document_name"] == "Arrest Hoge Raad.txt"
        assert len(body["follow_ups"]) == 3
        assert body["model"] == "fake-model"

    def test_session_history_round_trip(self, api) -> None:
        client, _ = api
        first = client.post("/api/v1/chat", json={"message": "Eerste vraag", "session_id": "s-1"}).json()
        second = client.post("/api/v1/chat", json={"message": "Tweede vraag", "session_id": "s-1"}).json()
        assert (first["turn_number"], second["turn_number"]) == (1, 2)

        history = client.get("/api/v1/chat/history/s-1").json()
        assert history["message_count"] == 4
        assert [m["role"] for m in history["messages"]] == ["user", "assistant", "user", "assistant"]
        assert history["messages"][2]["content"] == "Tweede vraag"

        assert client.delete("/api/v1/chat/history/s-1").json() == {"success": True, "session_id": "s-1"}
        assert client.delete("/api/v1/chat/history/s-1").status_code == 404

    def test_history_of_unknown_session_is_empty(self, api) -> None:
        client, _ = api
        history = client.get("/api/v1/chat/history/new-session").json()
        assert history["message_count"] == 0
        assert history["messages"] == []

    def test_blank_message_is_400(self, api) -> None:
        client, components = api
        response = client.post("/api/v1/chat", json={"message": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"
        assert components["llm"].calls == []

    def test_empty_message_is_422(self, api) -> None:
        client, _ = api
        assert client.post("/api/v1/chat", json={"message": ""}).status_code == 422

    def test_provider_failure_is_502(self, tmp_path: Path) -> None:
        app, components = _create_test_app(tmp_path, llm=_UnavailableLLM())
        with TestClient(app) as client:
            response = client.post("/api/v1/chat", json={"message": "vraag", "session_id": "s-err"})

        assert response.status_code == 502
        assert response.json()["error"] == "ProviderError"
        assert components["conversations"].peek("s-err") is None

    def test_rate_limit_is_429(self, tmp_path: Path) -> None:
        app, _ = _create_test_app(tmp_path, llm=_RateLimitedLLM())
        with TestClient(app) as client:
            response = client.post("/api/v1/chat", json={"message": "vraag"})
        assert response.status_code == 429

    def test_batch(self, api) -> None:
        client, _ = api
        body = client.post(
            "/api/v1/chat/batch", json={"queries": ["ontslag", "  ", "huur"]}
        ).json()

        assert body["total"] == 3
        assert body["succeeded"] == 2
        assert body["results"][1]["success"] is False

    def test_batch_size_limit(self, api) -> None:
        client, _ = api
        response = client.post("/api/v1/chat/batch", json={"queries": ["vraag"] * 21})
        assert response.status_code == 422

    def test_search(self, api) -> None:
        client, components = api
        _ingest(client, components, "hr2020", "Arrest Hoge Raad.txt", SAMPLE_RULING)
        _ingest(client, components, "huur", "Vonnis Rechtbank Amsterdam.txt", SAMPLE_TENANCY)

        body = client.post(
            "/api/v1/chat/search", json={"query": "opzegging huurovereenkomst", "limit": 3}
        ).json()

        assert body["query"] == "opzegging huurovereenkomst"
        assert 1 <= body["total"] <= 3
        first = body["results"][0]
        assert first["document_name"] == "Vonnis Rechtbank Amsterdam.txt"
        assert first["document_type"] == "rechtbank"
        assert first["relevance_category"] in {
            "zeer relevant", "relevant", "mogelijk relevant", "minder relevant",
        }

    def test_stats(self, api) -> None:
        client, _ = api
        client.post("/api/v1/chat", json={"message": "vraag", "session_id": "a"})
        client.post("/api/v1/chat", json={"message": "vraag", "session_id": "b"})

        stats = client.get("/api/v1/chat/stats").json()
        assert stats["total_sessions"] == 2
        assert stats["active_sessions"] == 2
        assert stats["total_messages"] == 4
        assert stats["average_messages_per_session"] == 2
