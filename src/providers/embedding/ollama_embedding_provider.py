"""Ollama embedding provider adapter.

Calls Ollama's native ``POST /api/embed`` endpoint to implement
:class:`IEmbeddingProvider` using ``nomic-embed-text`` (768 dimensions) by
default.  The request body is ``{"model": ..., "input": [...]}`` and the
response carries an ``embeddings`` array aligned with the input.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingServiceError

logger = structlog.get_logger(logger_name=__name__)

_EMBED_PATH = "/api/embed"
_OLLAMA_BATCH_LIMIT = 512


class OllamaEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an Ollama server.

    The ``httpx.AsyncClient`` is injected for testability and shared with
    the rest of the application; this provider never closes it.  Inputs
    larger than 512 texts are sent in several requests.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._http = http_client
        self._base_url = settings.embedding_base_url.rstrip("/")
        self._model = settings.embedding_model
        self._dimension = settings.embedding_dimension

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Every returned vector is checked against the configured dimension so
        a wrongly configured model fails here rather than inside the index.
        """
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), _OLLAMA_BATCH_LIMIT):
            batch = texts[start : start + _OLLAMA_BATCH_LIMIT]
            embeddings = await self._post_batch(batch)
            all_embeddings.extend(embeddings)
            logger.info(
                "ollama_embedding_batch",
                model=self._model,
                batch_size=len(batch),
            )
        return all_embeddings

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"ollama:{self._model}"

    def is_available(self) -> bool:
        """Return ``True`` when a base URL and model are configured."""
        return bool(self._base_url and self._model)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _post_batch(self, batch: list[str]) -> list[list[float]]:
        url = f"{self._base_url}{_EMBED_PATH}"
        try:
            response = await self._http.post(
                url, json={"model": self._model, "input": batch}
            )
        except httpx.HTTPError as exc:
            logger.warning("ollama_embedding_request_failed", url=url, error=str(exc))
            raise EmbeddingServiceError(
                message=f"Embedding service unreachable at {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code >= 400:
            logger.warning(
                "ollama_embedding_http_error",
                url=url,
                status=response.status_code,
            )
            raise EmbeddingServiceError(
                message=(
                    f"Embedding service returned HTTP {response.status_code}: "
                    f"{response.text[:200]}"
                ),
                provider_name=self.get_provider_name(),
            )

        try:
            body: Any = response.json()
        except ValueError as exc:
            raise EmbeddingServiceError(
                message="Embedding service returned a non-JSON body",
                provider_name=self.get_provider_name(),
            ) from exc

        return self._parse_embeddings(body, expected=len(batch))

    def _parse_embeddings(self, body: Any, expected: int) -> list[list[float]]:
        embeddings = body.get("embeddings") if isinstance(body, dict) else None
        if not isinstance(embeddings, list):
            raise EmbeddingServiceError(
                message="Embedding response is missing the 'embeddings' array",
                provider_name=self.get_provider_name(),
            )
        if len(embeddings) != expected:
            raise EmbeddingServiceError(
                message=(
                    f"Embedding service returned {len(embeddings)} vectors "
                    f"for {expected} inputs"
                ),
                provider_name=self.get_provider_name(),
            )

        vectors: list[list[float]] = []
        for vector in embeddings:
            if not isinstance(vector, list) or not all(
                isinstance(value, (int, float)) for value in vector
            ):
                raise EmbeddingServiceError(
                    message="Embedding response contains a non-numeric vector",
                    provider_name=self.get_provider_name(),
                )
            if len(vector) != self._dimension:
                raise EmbeddingServiceError(
                    message=(
                        f"Embedding dimension mismatch: expected {self._dimension}, "
                        f"got {len(vector)}"
                    ),
                    provider_name=self.get_provider_name(),
                )
            vectors.append([float(value) for value in vector])
        return vectors
