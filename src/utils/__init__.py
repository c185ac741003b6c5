"""Utility modules for the job openings service.

- **errors** -- Domain exception hierarchy rooted at JobOpeningsError; each
  pipeline stage raises its own subclass, and every class declares the HTTP
  status the API answers with.
- **hashing** -- Canonical-JSON SHA-256 content hashing that ties stored
  documents to their vector records.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from src.utils.errors import (
    AgentError,
    ConfigurationError,
    DocumentNotFoundError,
    EmbeddingServiceError,
    FileSystemError,
    JobOpeningsError,
    ValidationError,
    VectorStoreError,
)
from src.utils.hashing import canonical_json, content_hash
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "AgentError",
    "ConfigurationError",
    "DocumentNotFoundError",
    "EmbeddingServiceError",
    "FileSystemError",
    "JobOpeningsError",
    "ValidationError",
    "VectorStoreError",
    "canonical_json",
    "configure_logging",
    "content_hash",
    "get_logger",
]
