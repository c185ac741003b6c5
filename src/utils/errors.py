"""Custom exception hierarchy for the job openings service.

All application exceptions inherit from :class:`JobOpeningsError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "ollama", "pgvector", "upstash") caused the failure.

The hierarchy is organized by pipeline stage:

    JobOpeningsError  (base -- catch-all for any service error)
    +-- ValidationError          (bad input shape, HTTP 400)
    +-- EmbeddingServiceError    (embedding endpoint unreachable / non-2xx)
    +-- VectorStoreError         (index create / upsert / query / delete)
    +-- AgentError               (agent unavailable or empty answer)
    +-- FileSystemError          (document read / write / delete)
    |   +-- DocumentNotFoundError  (no stored document with that id, HTTP 404)
    +-- ConfigurationError       (startup / missing config)

Each class declares the HTTP ``status_code`` the API layer should answer
with.  Nothing in the pipeline retries on any of these; they propagate to
the HTTP boundary where :class:`~src.api.middleware.ErrorHandlingMiddleware`
turns them into JSON error bodies.
"""


class JobOpeningsError(Exception):
    """Base exception for all job openings service errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[ollama] Embedding request failed``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class ValidationError(JobOpeningsError):
    """Raised when a request payload or document does not match the schema.

    ``errors`` holds the field-level details (pydantic's ``errors()``
    output, trimmed to ``loc`` / ``msg``) when they are available.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid job opening data",
        provider_name: str | None = None,
        errors: list[dict[str, object]] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._errors = list(errors or [])

    @property
    def errors(self) -> list[dict[str, object]]:
        return list(self._errors)


# ---------------------------------------------------------------------------
# External service errors
# ---------------------------------------------------------------------------

class EmbeddingServiceError(JobOpeningsError):
    """Raised when the embedding endpoint is unreachable or answers non-2xx."""

    def __init__(
        self,
        message: str = "Embedding service request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class VectorStoreError(JobOpeningsError):
    """Raised when a vector index operation fails on any backend."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AgentError(JobOpeningsError):
    """Raised when the agent is unavailable or produces no usable answer."""

    def __init__(
        self,
        message: str = "Agent request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class FileSystemError(JobOpeningsError):
    """Raised when reading, writing, or deleting a stored document fails."""

    def __init__(
        self,
        message: str = "Document storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(FileSystemError):
    """Raised when no stored document exists for the requested id."""

    status_code = 404

    def __init__(
        self,
        message: str = "Job opening not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(JobOpeningsError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
