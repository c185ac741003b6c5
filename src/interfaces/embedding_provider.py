"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.  The
default implementation calls an Ollama-style ``/api/embed`` endpoint
serving ``nomic-embed-text``; any backend returning fixed-dimension float
vectors can be plugged in behind this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation:
#   OllamaEmbeddingProvider -- nomic-embed-text via POST /api/embed
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the indexing pipeline.

    Embeddings are consumed by
    :class:`~src.interfaces.vector_store_provider.IVectorStoreProvider` for
    indexing and query-time similarity search.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            Zero or more text strings to embed.  An empty list returns an
            empty list without contacting the backend.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.  Each
            inner list has length equal to :meth:`get_dimension`.

        Raises
        ------
        src.utils.errors.EmbeddingServiceError
            If the service is unreachable, answers with a non-success
            status, or returns a malformed or mis-sized body.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Convenience wrapper around :meth:`embed` for the query path.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Must match the dimension the vector index was created with
        (``768`` for ``nomic-embed-text``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured.

        Does not perform a network round-trip.
        """
