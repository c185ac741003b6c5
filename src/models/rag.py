"""RAG pipeline data models for the job openings index.

Defines Pydantic v2 models for chunking configuration, document chunks,
query results and ingestion summaries.  All models use frozen config.

RAG overview:
    1. CHUNKING: a stored job opening is flattened and split into bounded
       text chunks (src/services/ingestion/chunker.py).
    2. EMBEDDING: each chunk is turned into a 768-dim vector by the remote
       embedding endpoint (src/providers/embedding/).
    3. STORAGE: vectors plus metadata (chunk text, source hash, the job
       opening's own fields) are upserted into the vector index
       (src/providers/vector_store/).
    4. RETRIEVAL: a free-text query is embedded and the index returns the
       top-K nearest chunks (src/services/retrieval_service.py).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ChunkStrategy = Literal["json", "recursive", "character"]


# ---------------------------------------------------------------------------
# ChunkingConfig -- how a document is split.
# ---------------------------------------------------------------------------
class ChunkingConfig(BaseModel):
    """Chunker configuration.

    ``max_size`` and ``overlap`` are measured in characters.  Overlap must
    be strictly smaller than the chunk size or the chunker could never make
    progress.
    """

    model_config = ConfigDict(frozen=True)

    strategy: ChunkStrategy = Field(default="json", description="Splitting strategy.")
    max_size: int = Field(default=500, gt=0, description="Maximum characters per chunk.")
    overlap: int = Field(default=50, ge=0, description="Characters shared by neighbours.")
    convert_lists: bool = Field(
        default=True,
        description="Render each list item as its own piece instead of a JSON array.",
    )
    strip_whitespace: bool = Field(default=True, description="Trim chunk edges.")
    keep_separator: bool = Field(
        default=False,
        description="Keep the split separator attached to the following piece.",
    )

    @model_validator(mode="after")
    def _check_overlap(self) -> ChunkingConfig:
        if self.overlap >= self.max_size:
            raise ValueError(
                f"overlap ({self.overlap}) must be smaller than max_size ({self.max_size})"
            )
        return self


# ---------------------------------------------------------------------------
# DocumentChunk -- the unit that gets embedded.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A bounded fragment of a job opening, ready for embedding.

    ``chunk_id`` is ``<source_hash>-<index>`` so that re-indexing identical
    content overwrites the same vector records instead of duplicating them.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Deterministic id: '<source_hash>-<index>'.")
    index: int = Field(ge=0, description="Position of this chunk within its document.")
    text: str = Field(description="The chunk's textual content.")
    source_hash: str = Field(description="Content hash of the parent document.")


# ---------------------------------------------------------------------------
# QueryMatch -- one hit from a vector index query.
# ---------------------------------------------------------------------------
class QueryMatch(BaseModel):
    """A vector record returned by a similarity query, with its score."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Vector record id.")
    score: float = Field(description="Backend similarity score, higher is closer.")
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# IngestionResult -- output of the indexing pipeline for one document.
# ---------------------------------------------------------------------------
class IngestionResult(BaseModel):
    """Summary of a single document indexing run."""

    model_config = ConfigDict(frozen=True)

    source_hash: str = Field(description="Content hash of the indexed document.")
    index_name: str = Field(description="Vector index the chunks were written to.")
    chunks_created: int = Field(default=0, ge=0, description="Vector records upserted.")
    ingestion_time: float = Field(
        default=0.0,
        ge=0.0,
        description="Wall-clock time in seconds for the indexing run.",
    )
