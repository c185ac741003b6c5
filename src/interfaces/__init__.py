"""Public interface definitions for all external service providers.

Every external service the job openings pipeline touches is accessed
exclusively through the abstract base classes defined in this package.
Concrete adapters implement these interfaces and are injected at runtime
from ``src/main.py``, so tests can swap in fakes without network access.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    IEmbeddingProvider         →  OllamaEmbeddingProvider
    IVectorStoreProvider       →  ChromaDBProvider, PgVectorProvider,
                                  UpstashProvider
    IDocumentStore             →  JsonFileDocumentStore
    ILLMProvider               →  OpenAILLMProvider
"""

from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IVectorStoreProvider",
]
