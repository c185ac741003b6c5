"""Embedding provider implementations.

Embeddings convert job opening chunks into numeric vectors that capture
semantic meaning.  These vectors are stored in the configured vector index
and used for similarity search.

    OllamaEmbeddingProvider -- nomic-embed-text via Ollama's /api/embed (768 dims)
"""

from src.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider

__all__ = ["OllamaEmbeddingProvider"]
