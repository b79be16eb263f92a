"""
Retrieval — embeddings, vector-store access, and context selection.

This module wraps the vector store behind a clean interface so that
ingestion and answering layers never need to know which DB is backing
retrieval.

Public surface
--------------
- :class:`EmbeddingService` — text → vector with retries, cosine similarity.
- :class:`VectorStoreBase` — abstract backend (subclass for Pinecone, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`VectorStoreAdapter` — batching, metadata encoding, reference merging.
- :class:`ContextOptimizer` — rank and budget candidate chunks.
- :class:`ContextRetriever` — query → candidates → optimized context.
- :class:`CategoryService` — category lookup and weight updates.
"""

from content_rag.retrieval.adapter import VectorStoreAdapter
from content_rag.retrieval.base import VectorStoreBase
from content_rag.retrieval.categories import Category, CategoryService, InMemoryCategoryRepository
from content_rag.retrieval.embedding import EmbeddingService, cosine_similarity
from content_rag.retrieval.models import ContextChunk, ContextRequest, MetadataFilter
from content_rag.retrieval.optimizer import ContextOptimizer
from content_rag.retrieval.retriever import ContextRetriever

__all__ = [
    "Category",
    "CategoryService",
    "ChromaVectorStore",
    "ContextChunk",
    "ContextOptimizer",
    "ContextRequest",
    "ContextRetriever",
    "EmbeddingService",
    "InMemoryCategoryRepository",
    "MetadataFilter",
    "VectorStoreAdapter",
    "VectorStoreBase",
    "cosine_similarity",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from content_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
