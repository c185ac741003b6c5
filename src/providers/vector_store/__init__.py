"""Vector store provider implementations.

Three implementations of IVectorStoreProvider, chosen at startup by
``VECTOR_STORE_BACKEND`` (see ``src/main.py``):

    ChromaDBProvider  -- local, file-backed; default for development and tests
    PgVectorProvider  -- PostgreSQL + pgvector via asyncpg
    UpstashProvider   -- hosted Upstash Vector, one namespace per index
"""

from src.providers.vector_store.chromadb_provider import ChromaDBProvider
from src.providers.vector_store.pgvector_provider import PgVectorProvider
from src.providers.vector_store.upstash_provider import UpstashProvider

__all__ = ["ChromaDBProvider", "PgVectorProvider", "UpstashProvider"]
