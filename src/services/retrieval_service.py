"""Free-text retrieval over the job openings vector index."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from src.models.rag import QueryMatch

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TOP_K = 3


class RetrievalService:
    """Embeds a query and returns the nearest chunks from the index.

    A blank query short-circuits to an empty result without touching the
    embedding service or the vector store.  Querying an index that was
    never created also returns an empty result.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        index_name: str = "job-openings",
        default_top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._index_name = index_name
        self._default_top_k = default_top_k

    async def search(self, query: str, top_k: int | None = None) -> list[QueryMatch]:
        """Return up to *top_k* matches for *query*, best first."""
        if not query or not query.strip():
            return []
        limit = top_k if top_k is not None else self._default_top_k

        if self._index_name not in await self._vector_store.list_indexes():
            logger.info("retrieval_index_missing", index=self._index_name)
            return []

        vector = await self._embedding_provider.embed_single(query.strip())
        matches = await self._vector_store.query(self._index_name, vector, limit)

        logger.info(
            "retrieval_complete",
            index=self._index_name,
            query_length=len(query),
            top_k=limit,
            results=len(matches),
        )
        return matches
