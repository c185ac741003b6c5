"""Job openings FastAPI application entry point.

Wires together the providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and builds every process-wide client (httpx, vector
store, agent) once inside the application lifespan.

``build_components`` is also used by the ingestion CLI so both entry
points select the same backends.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    request_validation_handler,
)
from src.api.routes import APP_VERSION
from src.api.routes import router as api_router
from src.config.loader import chunking_config_from, load_config
from src.config.settings import Settings
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.providers.document_store.json_file_store import JsonFileDocumentStore
from src.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.services.ingestion.chunker import DocumentChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.job_opening_service import JobOpeningService
from src.services.qa_service import QAService
from src.services.retrieval_service import RetrievalService
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Vector store selection
# ---------------------------------------------------------------------------


def _select_vector_backend(app_settings: Settings) -> str:
    """Resolve ``VECTOR_STORE_BACKEND`` to a concrete backend name.

    ``auto`` picks Upstash in development when its credentials are set,
    pgvector in production when a connection string is set, and local
    ChromaDB otherwise.  An explicit backend must have its credentials.
    """
    backend = app_settings.vector_store_backend

    if backend == "upstash" and not app_settings.has_upstash_credentials():
        raise ConfigurationError(
            message="VECTOR_STORE_BACKEND=upstash requires VECTOR_UPSTASH_URL and VECTOR_UPSTASH_TOKEN",
        )
    if backend == "pgvector" and not app_settings.has_postgres_credentials():
        raise ConfigurationError(
            message="VECTOR_STORE_BACKEND=pgvector requires POSTGRES_VECTOR_CONNECTION_STRING",
        )
    if backend != "auto":
        return backend

    if app_settings.app_env == "development" and app_settings.has_upstash_credentials():
        return "upstash"
    if app_settings.app_env == "production" and app_settings.has_postgres_credentials():
        return "pgvector"
    return "chromadb"


def _build_vector_store(app_settings: Settings) -> IVectorStoreProvider:
    """Construct the vector store adapter for the selected backend.

    Backend SDKs are imported lazily so a deployment only loads the one
    it uses.
    """
    backend = _select_vector_backend(app_settings)

    if backend == "upstash":
        from src.providers.vector_store.upstash_provider import UpstashProvider

        return UpstashProvider(
            url=app_settings.vector_upstash_url,
            token=app_settings.vector_upstash_token,
        )

    if backend == "pgvector":
        from src.providers.vector_store.pgvector_provider import PgVectorProvider

        return PgVectorProvider(
            connection_string=app_settings.postgres_vector_connection_string,
            schema=app_settings.postgres_vector_schema,
        )

    from src.providers.vector_store.chromadb_provider import ChromaDBProvider

    return ChromaDBProvider(persist_directory=app_settings.chromadb_persist_dir)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    The caller owns ``http_client`` and ``vector_store`` and must close them.
    """
    config = load_config(settings=app_settings)
    index_name = app_settings.vector_index_name
    top_k = app_settings.query_top_k

    # -- Providers --
    vector_store = _build_vector_store(app_settings)
    http_client = httpx.AsyncClient(timeout=30.0)
    embedding_provider = OllamaEmbeddingProvider(settings=app_settings, http_client=http_client)

    document_store = None
    if app_settings.job_openings_dir:
        document_store = JsonFileDocumentStore(directory=app_settings.job_openings_dir)

    # -- Pipelines --
    chunker = DocumentChunker(config=chunking_config_from(config))
    ingestion_service = IngestionService(
        chunker=chunker,
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        index_name=index_name,
    )
    retrieval_service = RetrievalService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        index_name=index_name,
        default_top_k=top_k,
    )
    job_opening_service = JobOpeningService(
        ingestion=ingestion_service,
        retrieval=retrieval_service,
        document_store=document_store,
    )

    # -- Agent (optional) --
    qa_service = None
    if app_settings.agent_api_key:
        qa_config = config.get("qa") or {}
        qa_service = QAService(
            llm=OpenAILLMProvider(settings=app_settings),
            retrieval=retrieval_service,
            temperature=float(qa_config.get("temperature", 0.2)),
            max_tokens=int(qa_config.get("max_tokens", 800)),
        )

    return {
        "settings": app_settings,
        "http_client": http_client,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "document_store": document_store,
        "index_name": index_name,
        "ingestion_service": ingestion_service,
        "retrieval_service": retrieval_service,
        "job_opening_service": job_opening_service,
        "qa_service": qa_service,
    }


async def close_components(components: dict[str, Any]) -> None:
    """Close the process-wide clients created by :func:`build_components`."""
    http_client: httpx.AsyncClient = components["http_client"]
    vector_store: IVectorStoreProvider = components["vector_store"]
    try:
        await vector_store.close()
    finally:
        await http_client.aclose()


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Settings are read when the app is created; clients are only built when
    the lifespan starts.
    """
    app_settings = app_settings or Settings()
    configure_logging(log_level=app_settings.log_level, app_env=app_settings.app_env)

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        """Initialise all providers and services on startup, clean up on shutdown."""
        components = build_components(app_settings)
        for key, value in components.items():
            setattr(application.state, key, value)

        _logger.info(
            "app_startup",
            version=APP_VERSION,
            environment=app_settings.app_env,
            vector_store=components["vector_store"].get_provider_name(),
            index_name=components["index_name"],
            agent_configured=components["qa_service"] is not None,
        )

        yield

        await close_components(components)
        _logger.info("app_shutdown", message="Clients closed")

    application = FastAPI(
        title="Job Openings RAG API",
        version=APP_VERSION,
        description=(
            "Store job openings as JSON documents, index them as embedded chunks "
            "in a vector store, and search or ask questions over them."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)
    application.add_exception_handler(RequestValidationError, request_validation_handler)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the API under uvicorn with host/port from Settings."""
    app_settings = Settings()
    uvicorn.run(
        "src.main:app",
        host=app_settings.app_host,
        port=app_settings.app_port,
        reload=(app_settings.app_env == "development"),
    )


if __name__ == "__main__":
    main()
