"""Shared pytest fixtures for the job openings test suite."""

from __future__ import annotations

import hashlib
import math
import re
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import QueryMatch

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class HashingEmbeddingProvider(IEmbeddingProvider):
    """Deterministic bag-of-words embedder for tests.

    Each lowercase token is hashed into one of ``dimension`` buckets and the
    resulting count vector is L2-normalised, so texts sharing words have a
    high cosine similarity.  No network access.
    """

    def __init__(self, dimension: int = 64) -> None:
        self._dimension = dimension
        self.calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "hashing-test"

    def is_available(self) -> bool:
        return True

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for token in _TOKEN_RE.findall(text.lower()):
            bucket = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % self._dimension
            vector[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            # Keep the vector non-zero so cosine distance stays defined.
            vector[0] = 1.0
            return vector
        return [v / norm for v in vector]


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


def make_job_payload(**overrides: Any) -> dict[str, Any]:
    """Return a valid camelCase job opening payload."""
    payload: dict[str, Any] = {
        "position": "Senior Backend Engineer",
        "category": "Engineering",
        "type": "Full-time",
        "schedule": "Monday to Friday",
        "location": "Remote",
        "salaryRange": "$120k - $150k",
        "description": "Build and operate the APIs behind our hiring platform.",
        "keyResponsibilities": [
            "Design REST services",
            "Own the vector search pipeline",
        ],
        "requirements": ["5+ years of Python", "Experience with PostgreSQL"],
        "qualifications": ["BSc in Computer Science or equivalent"],
        "experienceRequired": "5 years",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def job_payload() -> dict[str, Any]:
    return make_job_payload()


@pytest.fixture
def job_payload_factory():  # noqa: ANN201
    """Return ``make_job_payload`` so tests can build variants."""
    return make_job_payload


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing every local path into *tmp_path*, agent disabled."""
    return Settings(
        _env_file=None,
        app_env="test",
        vector_store_backend="chromadb",
        chromadb_persist_dir=str(tmp_path / "chromadb"),
        job_openings_dir=str(tmp_path / "job-openings"),
        embedding_dimension=64,
        agent_api_key="",
        config_path=str(tmp_path / "missing-config.yaml"),
    )


# ---------------------------------------------------------------------------
# Provider fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hashing_embedder() -> HashingEmbeddingProvider:
    return HashingEmbeddingProvider(dimension=64)


@pytest.fixture
def hashing_embedder_factory():  # noqa: ANN201
    """Return the hashing embedder class for tests that need another dimension."""
    return HashingEmbeddingProvider


@pytest.fixture
def mock_embedding_provider() -> IEmbeddingProvider:
    """Mock IEmbeddingProvider returning one 4-dim vector per input text."""
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.get_provider_name.return_value = "mock-embedding"
    mock.is_available.return_value = True
    mock.get_dimension.return_value = 4

    async def _embed(texts: list[str]) -> list[list[float]]:
        return [[float(i), 0.0, 0.0, 1.0] for i, _ in enumerate(texts)]

    mock.embed = AsyncMock(side_effect=_embed)
    mock.embed_single = AsyncMock(return_value=[0.0, 0.0, 0.0, 1.0])
    return mock


@pytest.fixture
def mock_vector_store() -> IVectorStoreProvider:
    """Mock IVectorStoreProvider with an existing ``job-openings`` index."""
    mock = MagicMock(spec=IVectorStoreProvider)
    mock.get_provider_name.return_value = "mock-vector-store"
    mock.is_available.return_value = True
    mock.list_indexes = AsyncMock(return_value={"job-openings"})
    mock.create_index = AsyncMock(return_value=None)

    async def _upsert(index_name, vectors, metadata, ids=None) -> int:  # noqa: ANN001
        return len(vectors)

    mock.upsert = AsyncMock(side_effect=_upsert)
    mock.query = AsyncMock(return_value=[])
    mock.delete_by_source = AsyncMock(return_value=0)
    mock.close = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider whose complete() returns a fixed answer."""
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(return_value="The Senior Backend Engineer role is remote.")
    return mock


@pytest.fixture
def sample_matches() -> list[QueryMatch]:
    return [
        QueryMatch(
            id="abc-0",
            score=0.91,
            metadata={
                "position": "Senior Backend Engineer",
                "location": "Remote",
                "text": "position: Senior Backend Engineer\nlocation: Remote",
                "source_hash": "abc",
                "chunk_index": 0,
            },
        ),
        QueryMatch(
            id="def-2",
            score=0.55,
            metadata={
                "position": "Data Analyst",
                "location": "Berlin",
                "text": "requirements: SQL",
                "source_hash": "def",
                "chunk_index": 2,
            },
        ),
    ]
