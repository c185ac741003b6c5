"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
Each named index is a ChromaDB collection using cosine distance.  Fully
local and file-backed, which makes it the default for development and the
backend used by the integration tests.
"""

from __future__ import annotations

import json
from typing import Any
from uuid import uuid4

import chromadb
import structlog

from src.interfaces.vector_store_provider import (
    IVectorStoreProvider,
    validate_upsert_lengths,
)
from src.models.rag import QueryMatch
from src.utils.errors import VectorStoreError

logger = structlog.get_logger(logger_name=__name__)

# ChromaDB metadata values must be scalars; list values are stored as JSON
# strings and the affected keys are recorded under this key.
_JSON_FIELDS_KEY = "__json_fields"
_DIMENSION_KEY = "dimension"


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    Vectors always arrive pre-computed from the embedding service, so
    ChromaDB's built-in embedding is never invoked.  Without this, ChromaDB
    downloads its default ONNX model on collection creation.
    It declares ``__init__`` and a config round-trip so ChromaDB treats it
    as a current-style function and persists an empty config for it.
    """

    def __init__(self) -> None:
        pass

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "Vectors are pre-computed; ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"

    def get_config(self) -> dict[str, Any]:
        return {}

    @staticmethod
    def build_from_config(config: dict[str, Any]) -> _NoopEmbeddingFunction:
        return _NoopEmbeddingFunction()


def _encode_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    encoded: dict[str, Any] = {}
    json_fields: list[str] = []
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (list, dict)):
            encoded[key] = json.dumps(value, ensure_ascii=False)
            json_fields.append(key)
        else:
            encoded[key] = value
    if json_fields:
        encoded[_JSON_FIELDS_KEY] = ",".join(json_fields)
    return encoded


def _decode_metadata(metadata: dict[str, Any] | None) -> dict[str, Any]:
    if not metadata:
        return {}
    decoded = dict(metadata)
    json_fields = decoded.pop(_JSON_FIELDS_KEY, "")
    for key in filter(None, str(json_fields).split(",")):
        if isinstance(decoded.get(key), str):
            decoded[key] = json.loads(decoded[key])
    return decoded


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    Collections are opened lazily and cached per index name.  ChromaDB's
    client is synchronous; calls are short local disk operations.
    """

    def __init__(self, persist_directory: str = "./data/chromadb") -> None:
        self._persist_directory = persist_directory
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collections: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def list_indexes(self) -> set[str]:
        try:
            collections = self._client.list_collections()
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB list_collections failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        # Older releases return Collection objects, newer ones plain names.
        return {getattr(c, "name", c) for c in collections}

    async def create_index(self, name: str, dimension: int) -> None:
        try:
            collection = self._open_collection(name, dimension, create=True)
        except VectorStoreError:
            raise
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB create_index '{name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        existing_dim = (collection.metadata or {}).get(_DIMENSION_KEY)
        if existing_dim is not None and int(existing_dim) != dimension:
            raise VectorStoreError(
                message=(
                    f"Index '{name}' exists with dimension {existing_dim}, "
                    f"requested {dimension}"
                ),
                provider_name=self.get_provider_name(),
            )
        logger.info("chromadb_index_ready", index=name, dimension=dimension)

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
        try:
            collection = self._open_collection(index_name)
            collection.upsert(
                ids=record_ids,
                embeddings=vectors,
                documents=[str(m.get("text", "")) for m in metadata],
                metadatas=[_encode_metadata(m) for m in metadata],
            )
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB upsert into '{index_name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_upsert", index=index_name, count=len(record_ids))
        return len(record_ids)

    async def query(
        self,
        index_name: str,
        query_vector: list[float],
        top_k: int,
    ) -> list[QueryMatch]:
        if top_k <= 0:
            return []
        try:
            collection = self._open_collection(index_name)
            count = collection.count()
            if count == 0:
                return []
            results = collection.query(
                query_embeddings=[query_vector],
                n_results=min(top_k, count),
                include=["metadatas", "distances"],
            )
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB query on '{index_name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["ids"] or not results["ids"][0]:
            return []

        ids = results["ids"][0]
        metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(ids)
        distances = results["distances"][0] if results["distances"] else [0.0] * len(ids)

        matches = [
            QueryMatch(
                id=record_id,
                score=1.0 - float(distance),
                metadata=_decode_metadata(meta),
            )
            for record_id, meta, distance in zip(ids, metadatas, distances, strict=True)
        ]
        matches.sort(key=lambda m: m.score, reverse=True)

        logger.info(
            "chromadb_query",
            index=index_name,
            results_count=len(matches),
            top_score=matches[0].score if matches else 0.0,
        )
        return matches

    async def delete_by_source(self, index_name: str, source_hash: str) -> int:
        if index_name not in await self.list_indexes():
            return 0
        try:
            collection = self._open_collection(index_name)
            existing = collection.get(where={"source_hash": source_hash}, include=[])
            record_ids = existing["ids"] or []
            if record_ids:
                collection.delete(ids=record_ids)
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB delete_by_source on '{index_name}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_delete_by_source",
            index=index_name,
            source_hash=source_hash,
            deleted_count=len(record_ids),
        )
        return len(record_ids)

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open_collection(
        self, name: str, dimension: int | None = None, create: bool = False
    ) -> Any:
        if name in self._collections:
            return self._collections[name]

        if create:
            metadata: dict[str, Any] = {"hnsw:space": "cosine"}
            if dimension is not None:
                metadata[_DIMENSION_KEY] = dimension
            # Collections persisted with a different embedding function
            # reject ours; reopen them without one since vectors are
            # always supplied explicitly.
            try:
                collection = self._client.get_or_create_collection(
                    name=name,
                    metadata=metadata,
                    embedding_function=_NoopEmbeddingFunction(),
                )
            except ValueError:
                collection = self._client.get_or_create_collection(
                    name=name,
                    metadata=metadata,
                )
        else:
            try:
                collection = self._client.get_collection(
                    name=name,
                    embedding_function=_NoopEmbeddingFunction(),
                )
            except ValueError:
                collection = self._client.get_collection(name=name)

        self._collections[name] = collection
        return collection
