"""Job opening service: the composition behind the HTTP surface.

Ties the document store and the indexing / query pipelines together:

    create   -- validate, build metadata, write the JSON file, index it
    get      -- read one stored document by id
    list_all -- every stored document in listing form
    search   -- free-text retrieval over the vector index
    delete   -- drop the document's vectors by content hash, then the file;
                vectors still shared with an identical document are kept

The file store and the vector index are reconciled by content hash: a
stored document's ``metadata.contentHash`` names the vector records that
belong to it.  There is no transaction spanning both; a failure after the
file write leaves the file in place.

A vector-only deployment runs without a document store.  ``create`` and
``search`` still work; ``get``, ``list_all`` and ``delete`` raise
:class:`ConfigurationError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from src.models.job_opening import (
    StoredDocument,
    new_job_id,
    parse_job_opening,
    validate_job_id,
)
from src.models.rag import IngestionResult, QueryMatch
from src.utils.errors import ConfigurationError

if TYPE_CHECKING:
    from src.interfaces.document_store import IDocumentStore
    from src.services.ingestion.ingestion_service import IngestionService
    from src.services.retrieval_service import RetrievalService

logger = structlog.get_logger(logger_name=__name__)


class CreatedJobOpening:
    """Outcome of :meth:`JobOpeningService.create`."""

    def __init__(self, document: StoredDocument, ingestion: IngestionResult) -> None:
        self._document = document
        self._ingestion = ingestion

    @property
    def document(self) -> StoredDocument:
        return self._document

    @property
    def ingestion(self) -> IngestionResult:
        return self._ingestion


class DeletedJobOpening:
    """Outcome of :meth:`JobOpeningService.delete`."""

    def __init__(self, document_id: str, vectors_deleted: int) -> None:
        self._document_id = document_id
        self._vectors_deleted = vectors_deleted

    @property
    def document_id(self) -> str:
        return self._document_id

    @property
    def vectors_deleted(self) -> int:
        return self._vectors_deleted


class JobOpeningService:
    """CRUD and search over job openings.

    Parameters
    ----------
    ingestion:
        Indexing pipeline (also used for vector deletion).
    retrieval:
        Query pipeline.
    document_store:
        File-backed store; ``None`` for a vector-only deployment.
    """

    def __init__(
        self,
        ingestion: IngestionService,
        retrieval: RetrievalService,
        document_store: IDocumentStore | None = None,
    ) -> None:
        self._ingestion = ingestion
        self._retrieval = retrieval
        self._store = document_store

    @property
    def has_document_store(self) -> bool:
        return self._store is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create(self, payload: Any) -> CreatedJobOpening:
        """Validate, persist and index a new job opening.

        Validation happens before any side effect, so a rejected payload
        leaves neither a file nor vectors behind.
        """
        job = parse_job_opening(payload)
        document = StoredDocument.build(job, new_job_id())

        if self._store is not None:
            document = await self._store.save(document)

        result = await self._ingestion.ingest(job, document_id=document.id)
        logger.info(
            "job_opening_created",
            id=document.id,
            content_hash=result.source_hash,
            chunks=result.chunks_created,
        )
        return CreatedJobOpening(document=document, ingestion=result)

    async def get(self, job_id: str) -> StoredDocument:
        store = self._require_store()
        return await store.get(validate_job_id(job_id))

    async def list_all(self) -> list[dict[str, Any]]:
        """Return every stored job opening with metadata reduced to ``filePath``."""
        store = self._require_store()
        return [document.to_summary() for document in await store.list_all()]

    async def search(self, query: str, top_k: int | None = None) -> list[QueryMatch]:
        return await self._retrieval.search(query, top_k)

    async def delete(self, job_id: str) -> DeletedJobOpening:
        """Delete a job opening's vectors and then its file.

        When another stored document has the same content hash the vectors
        are kept and re-indexed under that document's id.

        Raises
        ------
        src.utils.errors.DocumentNotFoundError
            If no document is stored under *job_id*.
        """
        store = self._require_store()
        job_id = validate_job_id(job_id)
        document = await store.get(job_id)

        source_hash = _stored_hash(document)
        sharing = [
            other
            for other in await store.list_all()
            if other.id != job_id and _stored_hash(other) == source_hash
        ]

        if sharing:
            # Identical content shares one set of vectors; hand them over to
            # a surviving document instead of deleting them.
            survivor = sharing[-1]
            await self._ingestion.ingest(survivor.job_opening(), document_id=survivor.id)
            deleted = 0
        else:
            deleted = await self._ingestion.delete_source(source_hash)
        await store.delete(job_id)

        logger.info(
            "job_opening_deleted",
            id=job_id,
            content_hash=source_hash,
            vectors_deleted=deleted,
            shared_with=[other.id for other in sharing],
        )
        return DeletedJobOpening(document_id=job_id, vectors_deleted=deleted)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_store(self) -> IDocumentStore:
        if self._store is None:
            raise ConfigurationError(
                message="No job openings directory configured (JOB_OPENINGS_DIR is empty)",
            )
        return self._store


def _stored_hash(document: StoredDocument) -> str:
    """Content hash recorded for *document*, recomputed for legacy files."""
    return document.metadata.content_hash or document.content_hash()
