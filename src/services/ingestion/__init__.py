"""Job opening indexing pipeline.

Orchestrates: **validate -> hash -> chunk -> embed -> store**.

1. **Chunk** (chunker.py / DocumentChunker) -- Splits a job opening into
   bounded, overlapping chunks using the ``json``, ``recursive`` or
   ``character`` strategy.

2. **Embed** (via IEmbeddingProvider) -- Generates one vector per chunk in a
   single batched request.

3. **Store** (via IVectorStoreProvider) -- Creates the index on first use and
   upserts the records keyed by content hash and chunk index.

The IngestionService class orchestrates these stages.
"""

from src.services.ingestion.chunker import ChunkSequence, DocumentChunker
from src.services.ingestion.ingestion_service import IngestionService, build_record_metadata

__all__ = [
    "ChunkSequence",
    "DocumentChunker",
    "IngestionService",
    "build_record_metadata",
]
