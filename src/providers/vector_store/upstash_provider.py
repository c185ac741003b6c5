"""Upstash Vector store provider adapter.

Wraps ``upstash_vector.AsyncIndex`` to implement :class:`IVectorStoreProvider`.
An Upstash database is a single index with a fixed dimension and metric, so
each named index maps onto a namespace within it.  Namespaces are created
implicitly by the first upsert.
"""

from __future__ import annotations

import re
from typing import Any
from uuid import uuid4

import httpx
import structlog
from upstash_vector import AsyncIndex, Vector
from upstash_vector.errors import UpstashError

from src.interfaces.vector_store_provider import (
    IVectorStoreProvider,
    validate_upsert_lengths,
)
from src.models.rag import QueryMatch
from src.utils.errors import ConfigurationError, VectorStoreError

logger = structlog.get_logger(logger_name=__name__)

# Source hashes are interpolated into a metadata filter expression.
_SAFE_FILTER_VALUE = re.compile(r"^[A-Za-z0-9_-]+$")


class UpstashProvider(IVectorStoreProvider):
    """Vector store provider backed by a hosted Upstash Vector index.

    The ``AsyncIndex`` may be injected for tests; otherwise it is built from
    the REST URL and token.
    """

    def __init__(
        self,
        url: str = "",
        token: str = "",
        index: AsyncIndex | None = None,
    ) -> None:
        if index is None and not (url and token):
            raise ConfigurationError(
                message="VECTOR_UPSTASH_URL and VECTOR_UPSTASH_TOKEN are required for upstash",
                provider_name="upstash",
            )
        self._url = url
        self._index = index if index is not None else AsyncIndex(url=url, token=token)

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def list_indexes(self) -> set[str]:
        try:
            namespaces = await self._index.list_namespaces()
        except (UpstashError, httpx.HTTPError) as exc:
            raise VectorStoreError(
                message=f"Upstash list_namespaces failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        # The default namespace ("") always exists and is not a named index.
        return {ns for ns in namespaces if ns}

    async def create_index(self, name: str, dimension: int) -> None:
        try:
            info = await self._index.info()
        except (UpstashError, httpx.HTTPError) as exc:
            raise VectorStoreError(
                message=f"Upstash info failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if info.dimension != dimension:
            raise VectorStoreError(
                message=(
                    f"Upstash index has dimension {info.dimension}, "
                    f"requested {dimension} for '{name}'"
                ),
                provider_name=self.get_provider_name(),
            )
        logger.info("upstash_index_ready", index=name, dimension=dimension)

    async def upsert(
        self,
        index_name: str,
        vectors: list[list[float]],
        metadata: list[dict[str, Any]],
        ids: list[str] | None = None,
    ) -> int:
        validate_upsert_lengths(vectors, metadata, ids)
        if not vectors:
            return 0

        record_ids = ids if ids is not None else [uuid4().hex for _ in vectors]
        records = [
            Vector(id=record_id, vector=vector, metadata=meta)
            for record_id, vector, meta in zip(record_ids, vectors, metadata, strict=True)
        ]
        try:
            await self._index.upsert(vectors=records, namespace=index_name)
        except (UpstashError, httpx.HTTPError) as exc:
            raise VectorStoreError(
                message=f"Upstash upsert into '{index_name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("upstash_upsert", index=index_name, count=len(records))
        return len(records)

    async def query(
        self,
        index_name: str,
        query_vector: list[float],
        top_k: int,
    ) -> list[QueryMatch]:
        if top_k <= 0:
            return []
        try:
            results = await self._index.query(
                vector=query_vector,
                top_k=top_k,
                include_metadata=True,
                namespace=index_name,
            )
        except (UpstashError, httpx.HTTPError) as exc:
            raise VectorStoreError(
                message=f"Upstash query on '{index_name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        matches = [
            QueryMatch(id=str(r.id), score=float(r.score), metadata=dict(r.metadata or {}))
            for r in results
        ]
        logger.info(
            "upstash_query",
            index=index_name,
            results_count=len(matches),
            top_score=matches[0].score if matches else 0.0,
        )
        return matches

    async def delete_by_source(self, index_name: str, source_hash: str) -> int:
        if not _SAFE_FILTER_VALUE.fullmatch(source_hash):
            raise VectorStoreError(
                message=f"Invalid source hash {source_hash!r}",
                provider_name=self.get_provider_name(),
            )
        try:
            result = await self._index.delete(
                filter=f"source_hash = '{source_hash}'",
                namespace=index_name,
            )
        except (UpstashError, httpx.HTTPError) as exc:
            raise VectorStoreError(
                message=f"Upstash delete_by_source on '{index_name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "upstash_delete_by_source",
            index=index_name,
            source_hash=source_hash,
            deleted_count=result.deleted,
        )
        return result.deleted

    def get_provider_name(self) -> str:
        return "upstash"

    def is_available(self) -> bool:
        return bool(self._url) or self._index is not None
