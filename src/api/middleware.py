"""API middleware -- CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``JobOpeningsError`` subclasses (and FastAPI request
validation failures) into JSON ``ErrorResponse`` bodies.

# ─── MIDDLEWARE EXECUTION ORDER ───────────────────────────────────────
#
# Starlette middleware is a stack (LIFO -- last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)   # added 1st → inner
#     app.add_middleware(RequestLoggingMiddleware)  # added 2nd → outermost
#
#   Request flow:
#     Client → RequestLogging → ErrorHandling → route handler
#
# So RequestLoggingMiddleware sees the *final* response status code
# (after ErrorHandling replaced an exception with a JSON error).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import JobOpeningsError, ValidationError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]`` for
        development; override with specific origins in production.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def error_response(exc: JobOpeningsError) -> JSONResponse:
    """Render *exc* as an :class:`ErrorResponse` with its own status code."""
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        errors=exc.errors if isinstance(exc, ValidationError) and exc.errors else None,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert exceptions raised by route handlers into structured JSON errors.

    ``JobOpeningsError`` subclasses answer with their declared
    ``status_code`` (400 validation, 404 not found, 500 otherwise) and
    their message.  Anything else becomes a 500 with a generic detail.
    Stack traces are logged server-side only, never sent to the client.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except JobOpeningsError as exc:
            log = _logger.warning if exc.status_code < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=exc.status_code,
                path=str(request.url.path),
            )
            return error_response(exc)
        except Exception as exc:
            _logger.exception(
                "unhandled_error",
                error_type=type(exc).__name__,
                path=str(request.url.path),
            )
            body = ErrorResponse(error="InternalServerError", detail="Internal server error")
            return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer request-shape failures (bad JSON, out-of-range params) with a 400.

    FastAPI raises these before the route runs, so they never reach
    :class:`ErrorHandlingMiddleware`.  The body uses the same
    ``ErrorResponse`` shape as :class:`ValidationError`.
    """
    errors = [
        {
            "loc": ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
            "msg": err["msg"],
        }
        for err in exc.errors()
    ]
    _logger.warning(
        "request_validation_failed",
        path=str(request.url.path),
        errors=errors,
    )
    body = ErrorResponse(error=ValidationError.__name__, detail="Invalid request", errors=errors)
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=body.model_dump(exclude_none=True),
    )
