"""PostgreSQL + pgvector vector store provider adapter.

Implements :class:`IVectorStoreProvider` on top of an ``asyncpg`` pool.
Each named index is a table in the configured schema::

    id        TEXT PRIMARY KEY
    embedding vector(<dimension>)
    metadata  JSONB

Similarity is cosine: the ``<=>`` operator returns cosine distance and the
reported score is ``1 - distance``.  The ``vector`` extension is created on
first connection if it is not installed yet.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any
from uuid import uuid4

import asyncpg
import structlog
from pgvector.asyncpg import register_vector

from src.interfaces.vector_store_provider import (
    IVectorStoreProvider,
    validate_upsert_lengths,
)
from src.models.rag import QueryMatch
from src.utils.errors import ConfigurationError, VectorStoreError

logger = structlog.get_logger(logger_name=__name__)

# Index names become quoted table identifiers.
_IDENTIFIER_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]{0,62}$")


def _quote_identifier(name: str) -> str:
    if not _IDENTIFIER_RE.fullmatch(name):
        raise VectorStoreError(
            message=f"Invalid index name {name!r}",
            provider_name="pgvector",
        )
    return f'"{name}"'


def _deleted_count(status: str) -> int:
    """Parse asyncpg's ``"DELETE <n>"`` command status."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


async def _init_connection(conn: asyncpg.Connection) -> None:
    await register_vector(conn)
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


class PgVectorProvider(IVectorStoreProvider):
    """Vector store provider backed by PostgreSQL with the pgvector extension.

    The connection pool is created lazily on first use so the provider can
    be constructed synchronously at application startup.  A pre-built pool
    may be injected for tests.
    """

    def __init__(
        self,
        connection_string: str,
        schema: str = "public",
        pool: asyncpg.Pool | None = None,
        min_pool_size: int = 1,
        max_pool_size: int = 5,
    ) -> None:
        if not connection_string and pool is None:
            raise ConfigurationError(
                message="POSTGRES_VECTOR_CONNECTION_STRING is required for pgvector",
                provider_name="pgvector",
            )
        self._dsn = connection_string
        self._schema = schema
        self._schema_sql = _quote_identifier(schema)
        self._pool = pool
        self._min_pool_size = min_pool_size
        self._max_pool_size = max_pool_size
        self._pool_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def list_indexes(self) -> set[str]:
        pool = await self._get_pool()
        try:
            rows = await pool.fetch(
                "SELECT table_name FROM information_schema.columns "
                "WHERE table_schema = $1 AND column_name = 'embedding' "
                "AND udt_name = 'vector'",
                self._schema,
            )
        except asyncpg.PostgresError as exc:
            raise VectorStoreError(
                message=f"pgvector list_indexes failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return {row["table_name"] for row in rows}

    async def create_index(self, name: str, dimension: int) -> None:
        if dimension <= 0:
            raise VectorStoreError(
                message=f"Index dimension must be positive, got {dimension}",
                provider_name=self.get_provider_name(),
            )
        table = self._table(name)
        pool = await self._get_pool()
        try:
            await pool.execute(
                f"CREATE TABLE IF NOT EXISTS {table} ("
                "id TEXT PRIMARY KEY, "
                f"embedding vector({int(dimension)}) NOT NULL, "
                "metadata JSONB NOT NULL DEFAULT '{}'::jsonb)"
            )
            # pgvector stores the declared dimension as the column typmod.
            existing_dim = await pool.fetchval(
                "SELECT atttypmod FROM pg_attribute "
                "WHERE attrelid = $1::regclass AND attname = 'embedding'",
                table,
            )
        except asyncpg.PostgresError as exc:
            raise VectorStoreError(
                message=f"pgvector create_index '{name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if existing_dim is not None and existing_dim > 0 and existing_dim != dimension:
            raise VectorStoreError(
                message=(
                    f"Index '{name}' exists with dimension {existing_dim}, "
                    f"requested {dimension}"
                ),
                provider_name=self.get_provider_name(),
            )
        logger.info("pgvector_index_ready", index=name, dimension=dimension)

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
        table = self._table(index_name)
        pool = await self._get_pool()
        try:
            await pool.executemany(
                f"INSERT INTO {table} (id, embedding, metadata) VALUES ($1, $2, $3) "
                "ON CONFLICT (id) DO UPDATE "
                "SET embedding = EXCLUDED.embedding, metadata = EXCLUDED.metadata",
                list(zip(record_ids, vectors, metadata, strict=True)),
            )
        except asyncpg.PostgresError as exc:
            raise VectorStoreError(
                message=f"pgvector upsert into '{index_name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("pgvector_upsert", index=index_name, count=len(record_ids))
        return len(record_ids)

    async def query(
        self,
        index_name: str,
        query_vector: list[float],
        top_k: int,
    ) -> list[QueryMatch]:
        if top_k <= 0:
            return []
        table = self._table(index_name)
        pool = await self._get_pool()
        try:
            rows = await pool.fetch(
                f"SELECT id, metadata, 1 - (embedding <=> $1) AS score FROM {table} "
                "ORDER BY embedding <=> $1 LIMIT $2",
                query_vector,
                top_k,
            )
        except asyncpg.PostgresError as exc:
            raise VectorStoreError(
                message=f"pgvector query on '{index_name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        matches = [
            QueryMatch(
                id=row["id"],
                score=float(row["score"]),
                metadata=dict(row["metadata"] or {}),
            )
            for row in rows
        ]
        logger.info(
            "pgvector_query",
            index=index_name,
            results_count=len(matches),
            top_score=matches[0].score if matches else 0.0,
        )
        return matches

    async def delete_by_source(self, index_name: str, source_hash: str) -> int:
        table = self._table(index_name)
        pool = await self._get_pool()
        try:
            status = await pool.execute(
                f"DELETE FROM {table} WHERE metadata->>'source_hash' = $1",
                source_hash,
            )
        except asyncpg.exceptions.UndefinedTableError:
            return 0
        except asyncpg.PostgresError as exc:
            raise VectorStoreError(
                message=f"pgvector delete_by_source on '{index_name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        deleted = _deleted_count(status)
        logger.info(
            "pgvector_delete_by_source",
            index=index_name,
            source_hash=source_hash,
            deleted_count=deleted,
        )
        return deleted

    def get_provider_name(self) -> str:
        return "pgvector"

    def is_available(self) -> bool:
        return bool(self._dsn) or self._pool is not None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _table(self, name: str) -> str:
        return f"{self._schema_sql}.{_quote_identifier(name)}"

    async def _get_pool(self) -> asyncpg.Pool:
        if self._pool is not None:
            return self._pool
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await self._create_pool()
        return self._pool

    async def _create_pool(self) -> asyncpg.Pool:
        try:
            # The extension must exist before register_vector can look up
            # the type on each pooled connection.
            conn = await asyncpg.connect(self._dsn)
            try:
                await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
                await conn.execute(f"CREATE SCHEMA IF NOT EXISTS {self._schema_sql}")
            finally:
                await conn.close()

            pool = await asyncpg.create_pool(
                self._dsn,
                min_size=self._min_pool_size,
                max_size=self._max_pool_size,
                init=_init_connection,
            )
        except (OSError, asyncpg.PostgresError) as exc:
            logger.error("pgvector_connection_failed", error=str(exc))
            raise VectorStoreError(
                message=f"Could not connect to PostgreSQL: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("pgvector_pool_created", schema=self._schema)
        return pool
