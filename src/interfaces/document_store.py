"""Abstract base class for job opening document stores.

A document store keeps the full job opening (plus its id and generated
metadata) so it can be read back and listed.  It is the authoritative copy
for lookups; the vector index is authoritative only for similarity search.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.job_opening import StoredDocument


# Concrete implementation: JsonFileDocumentStore (src/providers/document_store/)
class IDocumentStore(ABC):
    """Contract for persisting :class:`StoredDocument` records by id."""

    @abstractmethod
    async def save(self, document: StoredDocument) -> StoredDocument:
        """Persist *document* and return it with its storage location set.

        Raises
        ------
        src.utils.errors.FileSystemError
            If the document cannot be written.
        """

    @abstractmethod
    async def get(self, document_id: str) -> StoredDocument:
        """Return the document stored under *document_id*.

        Raises
        ------
        src.utils.errors.DocumentNotFoundError
            If no such document exists.
        src.utils.errors.FileSystemError
            If the document exists but cannot be read or parsed.
        """

    @abstractmethod
    async def list_all(self) -> list[StoredDocument]:
        """Return every stored document.  Unreadable entries are skipped."""

    @abstractmethod
    async def delete(self, document_id: str) -> None:
        """Remove the document stored under *document_id*.

        Raises
        ------
        src.utils.errors.DocumentNotFoundError
            If no such document exists.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
