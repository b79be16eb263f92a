"""Explicit construction of the pipeline's long-lived services.

:func:`build_services` wires every component once from a
:class:`~content_rag.config.Settings` instance; callers pass the resulting
objects around instead of reaching for globals. Any dependency can be
injected (tests hand in fakes for the embedding model, store and LLM).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from content_rag.config import Settings, settings
from content_rag.ingestion.activity import ActivityIngestion
from content_rag.ingestion.analysis import ContentAnalyzer
from content_rag.ingestion.base import ContentIngestion
from content_rag.ingestion.document import DocumentIngestion
from content_rag.ingestion.note import NoteIngestion
from content_rag.orchestrator import ContentOrchestrator
from content_rag.retrieval.adapter import VectorStoreAdapter
from content_rag.retrieval.base import VectorStoreBase
from content_rag.retrieval.categories import CategoryRepository, CategoryService, InMemoryCategoryRepository
from content_rag.retrieval.embedding import EmbeddingService, get_embedding_function
from content_rag.retrieval.optimizer import ContextOptimizer
from content_rag.retrieval.retriever import ContextRetriever

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


@dataclass
class Services:
    embedding_service: EmbeddingService
    adapter: VectorStoreAdapter
    analyzer: ContentAnalyzer
    strategies: list[ContentIngestion]
    orchestrator: ContentOrchestrator
    optimizer: ContextOptimizer
    category_service: CategoryService
    retriever: ContextRetriever

    def close(self) -> None:
        self.orchestrator.shutdown()


def _default_llm(config: Settings) -> BaseChatModel | None:
    if not config.analyzer_enabled:
        return None
    if not (config.openai_api_key or config.llm_base_url):
        logger.warning("No LLM credentials configured; content analysis will use defaults")
        return None
    from content_rag.llm import get_llm

    return get_llm(config=config)


def build_services(
    config: Settings = settings,
    *,
    embeddings: Embeddings | None = None,
    store: VectorStoreBase | None = None,
    llm: BaseChatModel | None = None,
    categories: CategoryRepository | None = None,
) -> Services:
    """Build every service from *config*, using injected parts where given."""
    embedding_service = EmbeddingService(
        embeddings if embeddings is not None else get_embedding_function(config),
        dimension=config.embedding_dim,
        max_retries=config.embed_max_retries,
        backoff_seconds=config.embed_backoff_seconds,
    )

    if store is None:
        from content_rag.retrieval.chroma_store import ChromaVectorStore

        store = ChromaVectorStore(
            config.chroma_collection, host=config.chroma_host, port=config.chroma_port
        )
    adapter = VectorStoreAdapter(store, batch_delay_seconds=config.store_batch_delay_seconds)

    analyzer = ContentAnalyzer(llm if llm is not None else _default_llm(config))

    strategies: list[ContentIngestion] = [
        DocumentIngestion(
            embedding_service, adapter, analyzer,
            chunk_size=config.document_chunk_size,
            chunk_overlap=config.document_chunk_overlap,
            batch_size=config.document_batch_size,
        ),
        NoteIngestion(
            embedding_service, adapter, analyzer,
            chunk_size=config.note_chunk_size,
            chunk_overlap=config.note_chunk_overlap,
            batch_size=config.note_batch_size,
        ),
        ActivityIngestion(
            embedding_service, adapter, analyzer,
            batch_size=config.activity_batch_size,
        ),
    ]

    optimizer = ContextOptimizer(embedding_service, max_tokens=config.context_max_tokens)
    category_service = CategoryService(
        categories if categories is not None else InMemoryCategoryRepository(),
        weight_update_threshold=config.category_weight_threshold,
    )

    logger.info("Services built (collection=%s)", store.collection_name)
    return Services(
        embedding_service=embedding_service,
        adapter=adapter,
        analyzer=analyzer,
        strategies=strategies,
        orchestrator=ContentOrchestrator(
            strategies, max_workers=config.ingest_workers, max_tracked=config.max_tracked_jobs
        ),
        optimizer=optimizer,
        category_service=category_service,
        retriever=ContextRetriever(
            adapter, embedding_service, optimizer,
            category_service=category_service,
            candidate_k=config.context_candidate_k,
        ),
    )
