"""Abstract base class for vector-store service providers.

Defines the contract for named vector indexes holding embedded job opening
chunks.  Implementations wrap ChromaDB (local, file-backed), PostgreSQL
with the pgvector extension, and Upstash Vector.  Services only ever talk
to this interface, so the backend is picked once at startup.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.rag import QueryMatch


# Concrete implementations (src/providers/vector_store/):
#   ChromaDBProvider  -- one collection per index, persisted to disk
#   PgVectorProvider  -- one table per index in a Postgres schema
#   UpstashProvider   -- one namespace per index on a hosted Upstash index
class IVectorStoreProvider(ABC):
    """Contract for vector-store services used by the indexing pipeline.

    Indexes are addressed by name.  Every record carries an id, a vector of
    the index dimension and a flat metadata mapping which always includes
    ``text`` and ``source_hash``.
    """

    @abstractmethod
    async def list_indexes(self) -> set[str]:
        """Return the names of all existing indexes."""

    @abstractmethod
    async def create_index(self, name: str, dimension: int) -> None:
        """Create *name* with the given vector dimension.

        Creating an index that already exists is not an error.

        Raises
        ------
        src.utils.errors.VectorStoreError
            If the backend rejects the request, e.g. because an existing
            index has a different dimension.
        """

    @abstractmethod
    async def upsert(
        self,
        index_name: str,
        vectors: list[list[float]],
        metadata: list[dict[str, Any]],
        ids: list[str] | None = None,
    ) -> int:
        """Insert or overwrite records in *index_name*.

        Parameters
        ----------
        index_name:
            Target index; must already exist.
        vectors:
            Embedding vectors.
        metadata:
            Metadata dicts corresponding positionally to *vectors*.
        ids:
            Record ids.  When omitted the backend generates them.

        Returns
        -------
        int
            The number of records written.

        Raises
        ------
        ValueError
            If the three sequences do not have the same length.
        src.utils.errors.VectorStoreError
            If the backend write fails.
        """

    @abstractmethod
    async def query(
        self,
        index_name: str,
        query_vector: list[float],
        top_k: int,
    ) -> list[QueryMatch]:
        """Return up to *top_k* records nearest to *query_vector*.

        Results are ordered by descending similarity.
        """

    @abstractmethod
    async def delete_by_source(self, index_name: str, source_hash: str) -> int:
        """Delete every record whose ``source_hash`` metadata equals *source_hash*.

        Returns
        -------
        int
            The number of records deleted.  ``0`` when nothing matched or
            the index does not exist.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this vector-store provider.

        Example return values: ``"chromadb"``, ``"pgvector"``, ``"upstash"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""

    async def close(self) -> None:
        """Release backend connections.  No-op by default."""
        return None


def validate_upsert_lengths(
    vectors: list[list[float]],
    metadata: list[dict[str, Any]],
    ids: list[str] | None,
) -> None:
    """Raise ``ValueError`` unless vectors, metadata and ids line up."""
    if len(vectors) != len(metadata):
        raise ValueError(
            f"vectors ({len(vectors)}) and metadata ({len(metadata)}) "
            "must have the same length"
        )
    if ids is not None and len(ids) != len(vectors):
        raise ValueError(
            f"ids ({len(ids)}) and vectors ({len(vectors)}) must have the same length"
        )
