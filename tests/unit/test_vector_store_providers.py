"""Unit tests for the pgvector and Upstash vector store adapters.

Backends are replaced by mocks: an injected asyncpg-like pool for pgvector
and an injected ``AsyncIndex`` for Upstash.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from src.interfaces.vector_store_provider import validate_upsert_lengths
from src.providers.vector_store.pgvector_provider import PgVectorProvider, _deleted_count
from src.providers.vector_store.upstash_provider import UpstashProvider
from src.utils.errors import ConfigurationError, VectorStoreError


# ======================================================================
# Shared
# ======================================================================


class TestValidateUpsertLengths:
    def test_matching_lengths(self) -> None:
        validate_upsert_lengths([[1.0]], [{}], ["a"])
        validate_upsert_lengths([[1.0]], [{}], None)

    def test_metadata_mismatch(self) -> None:
        with pytest.raises(ValueError):
            validate_upsert_lengths([[1.0], [2.0]], [{}], None)

    def test_ids_mismatch(self) -> None:
        with pytest.raises(ValueError):
            validate_upsert_lengths([[1.0]], [{}], ["a", "b"])


# ======================================================================
# pgvector
# ======================================================================


def _pool() -> MagicMock:
    pool = MagicMock()
    pool.fetch = AsyncMock(return_value=[])
    pool.fetchval = AsyncMock(return_value=None)
    pool.execute = AsyncMock(return_value="CREATE TABLE")
    pool.executemany = AsyncMock(return_value=None)
    pool.close = AsyncMock(return_value=None)
    return pool


class TestPgVectorProvider:
    def test_requires_dsn_or_pool(self) -> None:
        with pytest.raises(ConfigurationError):
            PgVectorProvider(connection_string="")

    def test_rejects_unsafe_schema(self) -> None:
        with pytest.raises(VectorStoreError):
            PgVectorProvider(connection_string="postgresql://x", schema='public"; DROP')

    def test_metadata(self) -> None:
        provider = PgVectorProvider(connection_string="", pool=_pool())
        assert provider.get_provider_name() == "pgvector"
        assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_list_indexes(self) -> None:
        pool = _pool()
        pool.fetch.return_value = [{"table_name": "job-openings"}, {"table_name": "other"}]
        provider = PgVectorProvider(connection_string="", schema="vectors", pool=pool)

        assert await provider.list_indexes() == {"job-openings", "other"}
        args = pool.fetch.await_args.args
        assert "udt_name = 'vector'" in args[0]
        assert args[1] == "vectors"

    @pytest.mark.asyncio
    async def test_create_index_sql(self) -> None:
        pool = _pool()
        pool.fetchval.return_value = 768
        provider = PgVectorProvider(connection_string="", pool=pool)

        await provider.create_index("job-openings", 768)

        sql = pool.execute.await_args.args[0]
        assert 'CREATE TABLE IF NOT EXISTS "public"."job-openings"' in sql
        assert "vector(768)" in sql

    @pytest.mark.asyncio
    async def test_create_index_dimension_mismatch(self) -> None:
        pool = _pool()
        pool.fetchval.return_value = 384
        provider = PgVectorProvider(connection_string="", pool=pool)
        with pytest.raises(VectorStoreError, match="dimension 384"):
            await provider.create_index("job-openings", 768)

    @pytest.mark.asyncio
    async def test_invalid_index_name(self) -> None:
        provider = PgVectorProvider(connection_string="", pool=_pool())
        with pytest.raises(VectorStoreError, match="Invalid index name"):
            await provider.create_index('x"; DROP TABLE y; --', 4)

    @pytest.mark.asyncio
    async def test_upsert_uses_executemany(self) -> None:
        pool = _pool()
        provider = PgVectorProvider(connection_string="", pool=pool)

        count = await provider.upsert(
            "job-openings",
            [[1.0, 0.0], [0.0, 1.0]],
            [{"text": "a"}, {"text": "b"}],
            ids=["h-0", "h-1"],
        )

        assert count == 2
        sql, rows = pool.executemany.await_args.args
        assert "ON CONFLICT (id) DO UPDATE" in sql
        assert rows == [("h-0", [1.0, 0.0], {"text": "a"}), ("h-1", [0.0, 1.0], {"text": "b"})]

    @pytest.mark.asyncio
    async def test_upsert_empty_is_noop(self) -> None:
        pool = _pool()
        provider = PgVectorProvider(connection_string="", pool=pool)
        assert await provider.upsert("job-openings", [], []) == 0
        pool.executemany.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_query_maps_rows(self) -> None:
        pool = _pool()
        pool.fetch.return_value = [
            {"id": "h-0", "metadata": {"text": "a"}, "score": 0.9},
            {"id": "h-1", "metadata": None, "score": 0.4},
        ]
        provider = PgVectorProvider(connection_string="", pool=pool)

        matches = await provider.query("job-openings", [1.0, 0.0], top_k=2)

        assert [m.id for m in matches] == ["h-0", "h-1"]
        assert matches[0].metadata == {"text": "a"}
        assert matches[1].metadata == {}
        sql, vector, limit = pool.fetch.await_args.args
        assert "<=>" in sql
        assert vector == [1.0, 0.0]
        assert limit == 2

    @pytest.mark.asyncio
    async def test_delete_by_source(self) -> None:
        pool = _pool()
        pool.execute.return_value = "DELETE 3"
        provider = PgVectorProvider(connection_string="", pool=pool)

        assert await provider.delete_by_source("job-openings", "abc") == 3
        sql, source_hash = pool.execute.await_args.args
        assert "metadata->>'source_hash' = $1" in sql
        assert source_hash == "abc"

    @pytest.mark.asyncio
    async def test_delete_missing_table_returns_zero(self) -> None:
        pool = _pool()
        pool.execute.side_effect = asyncpg.exceptions.UndefinedTableError("no table")
        provider = PgVectorProvider(connection_string="", pool=pool)
        assert await provider.delete_by_source("job-openings", "abc") == 0

    @pytest.mark.asyncio
    async def test_postgres_error_wrapped(self) -> None:
        pool = _pool()
        pool.fetch.side_effect = asyncpg.PostgresError("boom")
        provider = PgVectorProvider(connection_string="", pool=pool)
        with pytest.raises(VectorStoreError) as exc_info:
            await provider.query("job-openings", [1.0], top_k=1)
        assert exc_info.value.provider_name == "pgvector"

    @pytest.mark.asyncio
    async def test_close_closes_pool(self) -> None:
        pool = _pool()
        provider = PgVectorProvider(connection_string="", pool=pool)
        await provider.close()
        pool.close.assert_awaited_once()

    @pytest.mark.parametrize(
        "status,expected", [("DELETE 0", 0), ("DELETE 12", 12), ("garbage", 0), (None, 0)]
    )
    def test_deleted_count(self, status, expected: int) -> None:  # noqa: ANN001
        assert _deleted_count(status) == expected


# ======================================================================
# Upstash
# ======================================================================


def _index() -> MagicMock:
    index = MagicMock()
    index.list_namespaces = AsyncMock(return_value=["", "job-openings"])
    index.info = AsyncMock(return_value=SimpleNamespace(dimension=768))
    index.upsert = AsyncMock(return_value="Success")
    index.query = AsyncMock(return_value=[])
    index.delete = AsyncMock(return_value=SimpleNamespace(deleted=2))
    return index


class TestUpstashProvider:
    def test_requires_credentials_or_index(self) -> None:
        with pytest.raises(ConfigurationError):
            UpstashProvider(url="https://x.upstash.io", token="")

    def test_metadata(self) -> None:
        provider = UpstashProvider(index=_index())
        assert provider.get_provider_name() == "upstash"
        assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_list_indexes_skips_default_namespace(self) -> None:
        provider = UpstashProvider(index=_index())
        assert await provider.list_indexes() == {"job-openings"}

    @pytest.mark.asyncio
    async def test_create_index_checks_dimension(self) -> None:
        provider = UpstashProvider(index=_index())
        await provider.create_index("job-openings", 768)
        with pytest.raises(VectorStoreError, match="dimension 768"):
            await provider.create_index("job-openings", 384)

    @pytest.mark.asyncio
    async def test_upsert_into_namespace(self) -> None:
        index = _index()
        provider = UpstashProvider(index=index)

        count = await provider.upsert(
            "job-openings", [[0.1, 0.2]], [{"text": "a", "source_hash": "h"}], ids=["h-0"]
        )

        assert count == 1
        kwargs = index.upsert.await_args.kwargs
        assert kwargs["namespace"] == "job-openings"
        record = kwargs["vectors"][0]
        assert record.id == "h-0"
        assert record.vector == [0.1, 0.2]
        assert record.metadata == {"text": "a", "source_hash": "h"}

    @pytest.mark.asyncio
    async def test_query_maps_results(self) -> None:
        index = _index()
        index.query.return_value = [
            SimpleNamespace(id="h-0", score=0.93, metadata={"text": "a"}),
            SimpleNamespace(id="h-1", score=0.51, metadata=None),
        ]
        provider = UpstashProvider(index=index)

        matches = await provider.query("job-openings", [0.1, 0.2], top_k=2)

        assert [m.id for m in matches] == ["h-0", "h-1"]
        assert matches[0].score == pytest.approx(0.93)
        assert matches[1].metadata == {}
        kwargs = index.query.await_args.kwargs
        assert kwargs["top_k"] == 2
        assert kwargs["include_metadata"] is True
        assert kwargs["namespace"] == "job-openings"

    @pytest.mark.asyncio
    async def test_delete_by_source_filter(self) -> None:
        index = _index()
        provider = UpstashProvider(index=index)

        assert await provider.delete_by_source("job-openings", "abc123") == 2
        kwargs = index.delete.await_args.kwargs
        assert kwargs["filter"] == "source_hash = 'abc123'"
        assert kwargs["namespace"] == "job-openings"

    @pytest.mark.asyncio
    async def test_delete_rejects_unsafe_hash(self) -> None:
        index = _index()
        provider = UpstashProvider(index=index)
        with pytest.raises(VectorStoreError):
            await provider.delete_by_source("job-openings", "x' OR 1=1 --")
        index.delete.assert_not_awaited()
