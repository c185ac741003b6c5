"""Integration tests for the FastAPI endpoints using TestClient.

The app is built with ``create_app`` so the real middleware stack runs;
``app.state`` is populated by hand with real services over a temporary
ChromaDB directory, a temporary JSON document store and a deterministic
hashing embedder.  The lifespan is never entered, so no network clients
are built.
"""

from __future__ import annotations

import itertools
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.main import create_app
from src.models.rag import ChunkingConfig
from src.providers.document_store.json_file_store import JsonFileDocumentStore
from src.providers.vector_store.chromadb_provider import ChromaDBProvider
from src.services.ingestion.chunker import DocumentChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.job_opening_service import JobOpeningService
from src.services.qa_service import QAService
from src.services.retrieval_service import RetrievalService
from src.utils.errors import EmbeddingServiceError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_test_app(
    test_settings, embedder, llm=None, with_store: bool = True  # noqa: ANN001
) -> FastAPI:
    """Create the app and wire real services into ``app.state``."""
    app = create_app(test_settings)

    vector_store = ChromaDBProvider(persist_directory=test_settings.chromadb_persist_dir)
    document_store = (
        JsonFileDocumentStore(directory=test_settings.job_openings_dir) if with_store else None
    )
    ingestion = IngestionService(
        chunker=DocumentChunker(ChunkingConfig(max_size=200, overlap=20)),
        embedding_provider=embedder,
        vector_store=vector_store,
    )
    retrieval = RetrievalService(embedding_provider=embedder, vector_store=vector_store)

    app.state.vector_store = vector_store
    app.state.embedding_provider = embedder
    app.state.document_store = document_store
    app.state.index_name = "job-openings"
    app.state.ingestion_service = ingestion
    app.state.retrieval_service = retrieval
    app.state.job_opening_service = JobOpeningService(
        ingestion=ingestion, retrieval=retrieval, document_store=document_store
    )
    app.state.qa_service = QAService(llm=llm, retrieval=retrieval) if llm else None
    return app


@pytest.fixture
def app(test_settings, hashing_embedder) -> FastAPI:
    return _create_test_app(test_settings, hashing_embedder)


@pytest.fixture
def client(app: FastAPI):  # noqa: ANN201
    counter = itertools.count(1_700_000_000_000)
    with patch(
        "src.services.job_opening_service.new_job_id",
        side_effect=lambda: f"jobOpening-{next(counter)}",
    ):
        yield TestClient(app, raise_server_exceptions=False)


# ---------------------------------------------------------------------------
# POST /api/v1/job-openings
# ---------------------------------------------------------------------------


class TestCreateJobOpening:
    def test_created_response(self, client: TestClient, job_payload) -> None:
        resp = client.post("/api/v1/job-openings", json=job_payload)

        assert resp.status_code == 201
        data = resp.json()
        assert data["id"] == "jobOpening-1700000000000"
        assert data["chunksIndexed"] > 0
        assert data["indexName"] == "job-openings"
        assert len(data["contentHash"]) == 64
        assert Path(data["filePath"]).exists()

    def test_missing_field_is_400_without_side_effects(
        self, client: TestClient, test_settings, hashing_embedder, job_payload
    ) -> None:
        del job_payload["position"]

        resp = client.post("/api/v1/job-openings", json=job_payload)

        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "ValidationError"
        assert any(err["loc"] == "position" for err in body["errors"])
        assert hashing_embedder.calls == []
        assert not Path(test_settings.job_openings_dir).exists()

    def test_non_object_body_is_400(self, client: TestClient) -> None:
        resp = client.post("/api/v1/job-openings", json=["not", "an", "object"])
        assert resp.status_code == 400

    def test_malformed_json_is_400(self, client: TestClient, hashing_embedder) -> None:
        resp = client.post(
            "/api/v1/job-openings",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "ValidationError"
        assert body["detail"] == "Invalid request"
        assert body["errors"]
        assert hashing_embedder.calls == []

    def test_embedding_failure_is_500(self, client: TestClient, app: FastAPI, job_payload) -> None:
        app.state.embedding_provider.embed = AsyncMock(
            side_effect=EmbeddingServiceError("endpoint down", provider_name="ollama")
        )

        resp = client.post("/api/v1/job-openings", json=job_payload)

        assert resp.status_code == 500
        assert resp.json() == {"error": "EmbeddingServiceError", "detail": "endpoint down"}

    def test_vector_only_deployment(self, test_settings, hashing_embedder, job_payload) -> None:
        app = _create_test_app(test_settings, hashing_embedder, with_store=False)
        client = TestClient(app)

        resp = client.post("/api/v1/job-openings", json=job_payload)

        assert resp.status_code == 201
        assert resp.json()["filePath"] is None
        assert client.get("/api/v1/job-openings").status_code == 500


# ---------------------------------------------------------------------------
# GET /api/v1/job-openings
# ---------------------------------------------------------------------------


class TestGetJobOpenings:
    def test_get_by_id(self, client: TestClient, job_payload) -> None:
        created = client.post("/api/v1/job-openings", json=job_payload).json()

        resp = client.get("/api/v1/job-openings", params={"jobId": created["id"]})

        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == created["id"]
        assert data["position"] == "Senior Backend Engineer"
        assert data["salaryRange"] == "$120k - $150k"
        assert data["metadata"]["contentHash"] == created["contentHash"]
        assert data["metadata"]["filePath"] == created["filePath"]

    def test_missing_id_is_404(self, client: TestClient) -> None:
        resp = client.get("/api/v1/job-openings", params={"jobId": "jobOpening-1"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "DocumentNotFoundError"

    def test_unsafe_id_is_400(self, client: TestClient) -> None:
        resp = client.get("/api/v1/job-openings", params={"jobId": "../secrets"})
        assert resp.status_code == 400

    def test_list_all(self, client: TestClient, job_payload, job_payload_factory) -> None:
        first = client.post("/api/v1/job-openings", json=job_payload).json()
        second = client.post(
            "/api/v1/job-openings", json=job_payload_factory(position="Data Analyst")
        ).json()

        resp = client.get("/api/v1/job-openings")

        assert resp.status_code == 200
        listing = resp.json()
        assert [item["id"] for item in listing] == [first["id"], second["id"]]
        assert listing[1]["position"] == "Data Analyst"
        assert listing[0]["metadata"] == {"filePath": first["filePath"]}

    def test_list_empty(self, client: TestClient) -> None:
        resp = client.get("/api/v1/job-openings")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_query(self, client: TestClient, job_payload, job_payload_factory) -> None:
        client.post("/api/v1/job-openings", json=job_payload)
        client.post(
            "/api/v1/job-openings",
            json=job_payload_factory(position="Pastry Chef", location="Lyon"),
        )

        resp = client.get(
            "/api/v1/job-openings", params={"jobQuery": "Senior Backend Engineer", "topK": 2}
        )

        assert resp.status_code == 200
        matches = resp.json()
        assert 0 < len(matches) <= 2
        assert set(matches[0]) == {"id", "score", "metadata"}
        assert any(m["metadata"]["position"] == "Senior Backend Engineer" for m in matches)
        assert matches[0]["score"] >= matches[-1]["score"]

    def test_blank_query_returns_empty_list(self, client: TestClient, job_payload) -> None:
        client.post("/api/v1/job-openings", json=job_payload)
        resp = client.get("/api/v1/job-openings", params={"jobQuery": "   "})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_query_before_any_index_returns_empty(self, client: TestClient) -> None:
        resp = client.get("/api/v1/job-openings", params={"jobQuery": "engineer"})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_top_k_out_of_range(self, client: TestClient) -> None:
        resp = client.get("/api/v1/job-openings", params={"jobQuery": "x", "topK": 0})
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "ValidationError"
        assert body["errors"][0]["loc"] == "topK"


# ---------------------------------------------------------------------------
# DELETE /api/v1/job-openings
# ---------------------------------------------------------------------------


class TestDeleteJobOpening:
    def test_delete_removes_file_and_vectors(self, client: TestClient, job_payload) -> None:
        created = client.post("/api/v1/job-openings", json=job_payload).json()

        resp = client.delete("/api/v1/job-openings", params={"jobId": created["id"]})

        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == created["id"]
        assert data["vectorsDeleted"] == created["chunksIndexed"]
        assert not Path(created["filePath"]).exists()

        search = client.get("/api/v1/job-openings", params={"jobQuery": "Backend Engineer"})
        assert search.json() == []

    def test_delete_duplicate_keeps_shared_vectors(self, client: TestClient, job_payload) -> None:
        first = client.post("/api/v1/job-openings", json=job_payload).json()
        second = client.post("/api/v1/job-openings", json=job_payload).json()
        assert first["contentHash"] == second["contentHash"]

        resp = client.delete("/api/v1/job-openings", params={"jobId": first["id"]})

        assert resp.status_code == 200
        assert resp.json()["vectorsDeleted"] == 0
        matches = client.get(
            "/api/v1/job-openings", params={"jobQuery": "Senior Backend Engineer"}
        ).json()
        assert matches
        assert {m["metadata"]["document_id"] for m in matches} == {second["id"]}

    def test_delete_missing_is_404(self, client: TestClient) -> None:
        resp = client.delete("/api/v1/job-openings", params={"jobId": "jobOpening-1"})
        assert resp.status_code == 404

    def test_delete_requires_id(self, client: TestClient) -> None:
        resp = client.delete("/api/v1/job-openings")
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# POST /api/v1/job-openings/ask
# ---------------------------------------------------------------------------


class TestAsk:
    def test_not_configured_is_503(self, client: TestClient) -> None:
        resp = client.post("/api/v1/job-openings/ask", json={"question": "Any remote roles?"})
        assert resp.status_code == 503

    def test_answer_with_sources(
        self, test_settings, hashing_embedder, mock_llm_provider, job_payload
    ) -> None:
        app = _create_test_app(test_settings, hashing_embedder, llm=mock_llm_provider)
        client = TestClient(app)
        client.post("/api/v1/job-openings", json=job_payload)

        resp = client.post(
            "/api/v1/job-openings/ask",
            json={"question": "Which roles are remote?", "topK": 2},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["answer"] == "The Senior Backend Engineer role is remote."
        assert 0 < len(data["sources"]) <= 2
        mock_llm_provider.complete.assert_awaited_once()

    def test_blank_question_is_400(
        self, test_settings, hashing_embedder, mock_llm_provider
    ) -> None:
        app = _create_test_app(test_settings, hashing_embedder, llm=mock_llm_provider)
        resp = TestClient(app).post("/api/v1/job-openings/ask", json={"question": "  "})
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# GET /api/v1/health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["vectorStore"] == "chromadb"
        assert data["indexName"] == "job-openings"
        assert data["agentConfigured"] is False
        assert data["documentStore"] is True
