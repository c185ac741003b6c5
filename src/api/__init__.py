"""Job openings API layer -- routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    request_validation_handler,
)
from src.api.routes import router
from src.api.schemas import (
    AskQuestionRequest,
    AskQuestionResponse,
    ErrorResponse,
    HealthResponse,
    JobOpeningCreatedResponse,
    JobOpeningDeletedResponse,
    QueryMatchResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "request_validation_handler",
    "router",
    "AskQuestionRequest",
    "AskQuestionResponse",
    "ErrorResponse",
    "HealthResponse",
    "JobOpeningCreatedResponse",
    "JobOpeningDeletedResponse",
    "QueryMatchResponse",
]
