"""FastAPI API routes for the job openings service.

Provides REST endpoints for storing, listing, searching and deleting job
openings, grounded question answering, and a health check.  Service
dependencies are resolved from ``app.state`` via FastAPI's ``Depends``
using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                          Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/job-openings?jobId=       GET     One stored job opening
# /api/v1/job-openings?jobQuery=    GET     Semantic search (topK, default 3)
# /api/v1/job-openings              GET     All stored job openings
# /api/v1/job-openings              POST    Store + index a job opening
# /api/v1/job-openings?jobId=       DELETE  Remove vectors, then the file
# /api/v1/job-openings/ask          POST    Grounded Q&A over the index
# /api/v1/health                    GET     Health check + backend status
#
# Errors raised by services propagate to ErrorHandlingMiddleware, which
# maps them onto 400 / 404 / 500 JSON bodies.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request

from src.api.schemas import (
    AskQuestionRequest,
    AskQuestionResponse,
    ErrorResponse,
    HealthResponse,
    JobOpeningCreatedResponse,
    JobOpeningDeletedResponse,
    QueryMatchResponse,
)
from src.services.job_opening_service import JobOpeningService
from src.services.qa_service import QAService
from src.utils.errors import ValidationError

# All routes in this file are prefixed with /api/v1.
router = APIRouter(prefix="/api/v1")

APP_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_job_opening_service(request: Request) -> JobOpeningService:
    """Return the job opening service from application state."""
    return request.app.state.job_opening_service


def _get_qa_service(request: Request) -> QAService | None:
    """Return the Q&A service from application state, or ``None``."""
    return getattr(request.app.state, "qa_service", None)


JobOpeningServiceDep = Annotated[JobOpeningService, Depends(_get_job_opening_service)]
QAServiceDep = Annotated[QAService | None, Depends(_get_qa_service)]


# ---------------------------------------------------------------------------
# Job openings
# ---------------------------------------------------------------------------


@router.get(
    "/job-openings",
    summary="Get, search, or list job openings",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_job_openings(
    service: JobOpeningServiceDep,
    job_id: Annotated[str | None, Query(alias="jobId")] = None,
    job_query: Annotated[str | None, Query(alias="jobQuery")] = None,
    top_k: Annotated[int | None, Query(alias="topK", ge=1, le=50)] = None,
) -> Any:
    """Dispatch on the query string.

    ``jobId`` returns that stored document, ``jobQuery`` returns ranked
    matches from the vector index (an empty list for blank text), and no
    parameter lists every stored document with metadata reduced to
    ``filePath``.
    """
    if job_id is not None and job_id.strip():
        document = await service.get(job_id.strip())
        return document.model_dump(by_alias=True, exclude_none=True)

    if job_query is not None:
        matches = await service.search(job_query, top_k)
        return [QueryMatchResponse(**m.model_dump()).model_dump() for m in matches]

    return await service.list_all()


@router.post(
    "/job-openings",
    response_model=JobOpeningCreatedResponse,
    status_code=201,
    summary="Store and index a job opening",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_job_opening(
    service: JobOpeningServiceDep,
    payload: Annotated[Any, Body()] = None,
) -> JobOpeningCreatedResponse:
    """Validate, write, and index a job opening.

    The body is taken as raw JSON and validated by the service, so a
    schema mismatch answers 400 before anything is written or embedded.
    """
    created = await service.create(payload)
    return JobOpeningCreatedResponse(
        id=created.document.id,
        content_hash=created.ingestion.source_hash,
        chunks_indexed=created.ingestion.chunks_created,
        index_name=created.ingestion.index_name,
        file_path=created.document.metadata.file_path or None,
    )


@router.delete(
    "/job-openings",
    response_model=JobOpeningDeletedResponse,
    summary="Delete a job opening and its vectors",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_job_opening(
    service: JobOpeningServiceDep,
    job_id: Annotated[str | None, Query(alias="jobId")] = None,
) -> JobOpeningDeletedResponse:
    if job_id is None or not job_id.strip():
        raise ValidationError(
            message="jobId query parameter is required",
            errors=[{"loc": "jobId", "msg": "field required"}],
        )
    deleted = await service.delete(job_id.strip())
    return JobOpeningDeletedResponse(
        id=deleted.document_id,
        vectors_deleted=deleted.vectors_deleted,
    )


@router.post(
    "/job-openings/ask",
    response_model=AskQuestionResponse,
    summary="Answer a question from the indexed job openings",
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def ask_question(
    body: AskQuestionRequest,
    qa_service: QAServiceDep,
) -> AskQuestionResponse:
    if qa_service is None:
        raise HTTPException(
            status_code=503,
            detail="Question answering is not configured (AGENT_API_KEY is empty)",
        )
    result = await qa_service.answer(body.question, body.top_k)
    return AskQuestionResponse(
        answer=result.answer,
        sources=[QueryMatchResponse(**m.model_dump()) for m in result.sources],
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return service status and the configured backends.

    Does not contact any backend; ``status`` is ``"degraded"`` when the
    vector store reports itself unavailable.
    """
    state = request.app.state
    vector_store = state.vector_store
    embedding = state.embedding_provider
    ok = vector_store.is_available() and embedding.is_available()
    return HealthResponse(
        status="healthy" if ok else "degraded",
        version=APP_VERSION,
        vector_store=vector_store.get_provider_name(),
        index_name=state.index_name,
        embedding=embedding.get_provider_name(),
        agent_configured=getattr(state, "qa_service", None) is not None,
        document_store=state.job_opening_service.has_document_store,
    )
