"""File-backed job opening document store.

Each document is written as ``<directory>/<id>.json`` containing the
camelCase wire form of a :class:`StoredDocument` (job fields, ``id`` and
``metadata``).  Blocking file I/O runs via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import structlog

from src.interfaces.document_store import IDocumentStore
from src.models.job_opening import StoredDocument, parse_stored_document, validate_job_id
from src.utils.errors import DocumentNotFoundError, FileSystemError, ValidationError

logger = structlog.get_logger(logger_name=__name__)


class JsonFileDocumentStore(IDocumentStore):
    """Stores one JSON file per job opening in a single directory.

    The directory is created on first write.  Listing reads every ``*.json``
    file and skips the ones that do not parse as a stored job opening.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    # -- IDocumentStore implementation ------------------------------------------

    async def save(self, document: StoredDocument) -> StoredDocument:
        path = self._path_for(document.id)
        stored = document.model_copy(
            update={"metadata": document.metadata.model_copy(update={"file_path": str(path)})}
        )
        payload = json.dumps(stored.model_dump(by_alias=True, exclude_none=True), indent=2)
        try:
            await asyncio.to_thread(self._write, path, payload)
        except OSError as exc:
            raise FileSystemError(
                message=f"Could not write job opening file {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("job_opening_file_written", id=document.id, path=str(path))
        return stored

    async def get(self, document_id: str) -> StoredDocument:
        path = self._path_for(document_id)
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError as exc:
            raise DocumentNotFoundError(
                message=f"Job opening {document_id} not found",
                provider_name=self.get_provider_name(),
            ) from exc
        except OSError as exc:
            raise FileSystemError(
                message=f"Could not read job opening file {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            return self._parse(path, raw)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise FileSystemError(
                message=f"Job opening file {path} is not a valid document: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def list_all(self) -> list[StoredDocument]:
        if not self._directory.is_dir():
            return []

        paths = await asyncio.to_thread(lambda: sorted(self._directory.glob("*.json")))
        documents: list[StoredDocument] = []
        for path in paths:
            try:
                raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
                documents.append(self._parse(path, raw))
            except (OSError, json.JSONDecodeError, ValidationError) as exc:
                logger.warning("job_opening_file_skipped", path=str(path), error=str(exc))
        return documents

    async def delete(self, document_id: str) -> None:
        path = self._path_for(document_id)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError as exc:
            raise DocumentNotFoundError(
                message=f"Job opening {document_id} not found",
                provider_name=self.get_provider_name(),
            ) from exc
        except OSError as exc:
            raise FileSystemError(
                message=f"Could not delete job opening file {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("job_opening_file_deleted", id=document_id, path=str(path))

    def get_provider_name(self) -> str:
        return "json_file_store"

    # -- Internal helpers -------------------------------------------------------

    def _path_for(self, document_id: str) -> Path:
        return self._directory / f"{validate_job_id(document_id)}.json"

    @staticmethod
    def _parse(path: Path, raw: str) -> StoredDocument:
        data = json.loads(raw)
        # Files written before ids were stored carry the id only as the stem.
        if isinstance(data, dict):
            data.setdefault("id", path.stem)
        return parse_stored_document(data)

    def _write(self, path: Path, payload: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
