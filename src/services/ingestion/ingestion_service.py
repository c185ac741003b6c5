"""Orchestrator for the job opening indexing pipeline.

Pipeline stages: **validate -> hash -> chunk -> embed -> ensure index -> upsert**.

The :class:`IngestionService` coordinates three collaborators (chunker,
embedding provider, vector store) without any of them knowing about each
other:

    1. parse_job_opening -- validates the payload against the schema
    2. content_hash -- SHA-256 of the canonical JSON form
    3. DocumentChunker -- splits the opening into bounded, overlapping chunks
    4. IEmbeddingProvider -- one batched call for every chunk text
    5. IVectorStoreProvider -- creates the index if missing, upserts records

Record ids are ``<content_hash>-<chunk_index>``, so indexing the same
content twice overwrites the same records.  This pipeline never touches the
document store; writing the JSON file is the caller's job.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from src.models.job_opening import JobOpening, parse_job_opening
from src.models.rag import DocumentChunk, IngestionResult
from src.services.ingestion.chunker import DocumentChunker

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)


def build_record_metadata(
    chunk: DocumentChunk,
    job: JobOpening,
    document_id: str | None = None,
) -> dict[str, Any]:
    """Return the metadata stored alongside one chunk's vector.

    Carries the chunk text, its provenance, and the job opening's own
    fields in wire form so a query hit can be rendered without a second
    lookup.
    """
    metadata: dict[str, Any] = {
        **job.to_wire(),
        "text": chunk.text,
        "source_hash": chunk.source_hash,
        "chunk_index": chunk.index,
    }
    if document_id:
        metadata["document_id"] = document_id
    return metadata


class IngestionService:
    """Indexes job openings into a named vector index.

    Parameters
    ----------
    chunker:
        Splits the job opening into chunks.
    embedding_provider:
        Generates embedding vectors for chunk text.
    vector_store:
        Stores embedded chunks for semantic retrieval.
    index_name:
        Target vector index (``job-openings`` by default).
    """

    def __init__(
        self,
        chunker: DocumentChunker,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        index_name: str = "job-openings",
    ) -> None:
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._index_name = index_name

    @property
    def index_name(self) -> str:
        return self._index_name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(
        self,
        payload: JobOpening | Mapping[str, Any],
        document_id: str | None = None,
    ) -> IngestionResult:
        """Run the full indexing pipeline for one job opening.

        Raises
        ------
        src.utils.errors.ValidationError
            If *payload* does not match the JobOpening schema; nothing has
            been embedded or written at that point.
        src.utils.errors.EmbeddingServiceError
            If the embedding endpoint fails.
        src.utils.errors.VectorStoreError
            If index creation or the upsert fails.
        """
        start = time.monotonic()

        # Steps 1-3: validate, hash, chunk.  Validation failures raise here.
        job = parse_job_opening(payload)
        chunks = list(self._chunker.chunk(job))
        source_hash = chunks[0].source_hash if chunks else job.content_hash()

        # Step 4: one batched embedding call.
        vectors = await self._embedding_provider.embed([c.text for c in chunks])

        # Step 5: make sure the index exists before writing to it.
        await self.ensure_index()

        # Step 6: upsert with deterministic ids.
        count = await self._vector_store.upsert(
            self._index_name,
            vectors,
            [build_record_metadata(c, job, document_id) for c in chunks],
            ids=[c.chunk_id for c in chunks],
        )

        elapsed = time.monotonic() - start
        logger.info(
            "job_opening_indexed",
            index=self._index_name,
            source_hash=source_hash,
            chunks=count,
            duration_s=round(elapsed, 3),
        )
        return IngestionResult(
            source_hash=source_hash,
            index_name=self._index_name,
            chunks_created=count,
            ingestion_time=elapsed,
        )

    async def ensure_index(self) -> None:
        """Create the target index unless it is already listed."""
        existing = await self._vector_store.list_indexes()
        if self._index_name in existing:
            return
        await self._vector_store.create_index(
            self._index_name, self._embedding_provider.get_dimension()
        )
        logger.info(
            "vector_index_created",
            index=self._index_name,
            dimension=self._embedding_provider.get_dimension(),
            backend=self._vector_store.get_provider_name(),
        )

    async def delete_source(self, source_hash: str) -> int:
        """Remove every vector record derived from content *source_hash*."""
        deleted = await self._vector_store.delete_by_source(self._index_name, source_hash)
        logger.info(
            "job_opening_vectors_deleted",
            index=self._index_name,
            source_hash=source_hash,
            deleted=deleted,
        )
        return deleted
