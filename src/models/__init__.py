"""Domain models -- re-exports all public model classes.

    - job_opening.py -- JobOpening payloads and stored documents
    - rag.py         -- chunking config, chunks, query matches, ingestion results
"""

from __future__ import annotations

from src.models.job_opening import (
    DocumentMetadata,
    JobOpening,
    StoredDocument,
    new_job_id,
    parse_job_opening,
    parse_stored_document,
    validate_job_id,
)
from src.models.rag import ChunkingConfig, DocumentChunk, IngestionResult, QueryMatch

__all__ = [
    "ChunkingConfig",
    "DocumentChunk",
    "DocumentMetadata",
    "IngestionResult",
    "JobOpening",
    "QueryMatch",
    "StoredDocument",
    "new_job_id",
    "parse_job_opening",
    "parse_stored_document",
    "validate_job_id",
]
