"""Pydantic request/response schemas for the job openings API.

Defines the public contract for the REST endpoints: create, lookup,
search, delete, question answering, and health.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# FastAPI uses these models to serialize responses (via response_model=...)
# and to generate the OpenAPI docs at /docs.  Response keys are camelCase
# on the wire (``contentHash``, ``chunksIndexed``) to match the stored
# documents; Python attributes stay snake_case through aliases.
#
# The POST /job-openings body is deliberately NOT declared as a model here:
# it is validated by ``parse_job_opening`` so the API and the CLI report
# schema mismatches the same way.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    errors: list[dict[str, Any]] | None = None


class JobOpeningCreatedResponse(_CamelModel):
    """Response returned after a job opening is stored and indexed."""

    message: str = "Job opening saved and indexed"
    id: str
    content_hash: str
    chunks_indexed: int
    index_name: str
    file_path: str | None = None


class JobOpeningDeletedResponse(_CamelModel):
    """Response returned after a job opening and its vectors are removed."""

    message: str = "Job opening deleted"
    id: str
    vectors_deleted: int


class QueryMatchResponse(BaseModel):
    """A single ranked search hit."""

    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class AskQuestionRequest(_CamelModel):
    """A free-text question about the indexed job openings."""

    question: str = Field(..., max_length=1000)
    top_k: int | None = Field(default=None, ge=1, le=50)


class AskQuestionResponse(BaseModel):
    """Answer grounded on the retrieved job opening chunks."""

    answer: str
    sources: list[QueryMatchResponse] = Field(default_factory=list)


class HealthResponse(_CamelModel):
    """Application health check response."""

    status: str
    version: str
    vector_store: str
    index_name: str
    embedding: str
    agent_configured: bool
    document_store: bool
