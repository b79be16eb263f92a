"""Context retriever — fetch candidates from the store, then optimize.

Usage::

    services = build_services()
    chunks = services.retriever.retrieve(
        ContextRequest(query="How did my runs go last week?", max_chunks=5),
        user_id="user-1",
    )
    for c in chunks:
        print(f"{c.relevance_score:.2f}", c.content[:80])
"""

from __future__ import annotations

import logging

from content_rag.config import settings
from content_rag.models import ContentStatus
from content_rag.retrieval.adapter import VectorStoreAdapter
from content_rag.retrieval.categories import CategoryService
from content_rag.retrieval.embedding import EmbeddingService
from content_rag.retrieval.models import ContextChunk, ContextRequest, MetadataFilter
from content_rag.retrieval.optimizer import ContextOptimizer

logger = logging.getLogger(__name__)


class ContextRetriever:
    """Embed a query, pull candidate chunks for one user, rank and trim them.

    Parameters
    ----------
    adapter:
        Vector-store adapter used for the candidate search.
    embedding_service:
        Embeds the query once; the vector is reused by the optimizer.
    optimizer:
        Final ranking / budgeting step.
    category_service:
        Optional; needed only for ``include_related_categories``.
    candidate_k:
        Number of nearest neighbours fetched before optimization.
    """

    def __init__(
        self,
        adapter: VectorStoreAdapter,
        embedding_service: EmbeddingService,
        optimizer: ContextOptimizer,
        *,
        category_service: CategoryService | None = None,
        candidate_k: int = settings.context_candidate_k,
    ) -> None:
        self._adapter = adapter
        self._embedding_service = embedding_service
        self._optimizer = optimizer
        self._category_service = category_service
        self.candidate_k = candidate_k

    def retrieve(self, request: ContextRequest, *, user_id: str, k: int | None = None) -> list[ContextChunk]:
        query_embedding = self._embedding_service.embed(request.query)
        filters = self.build_filters(request, user_id)
        candidates = self._adapter.query(query_embedding, k=k or self.candidate_k, filters=filters)
        logger.info("Fetched %d candidate chunks for user %s", len(candidates), user_id)
        return self._optimizer.optimize(candidates, request, query_embedding=query_embedding)

    def build_filters(self, request: ContextRequest, user_id: str) -> list[MetadataFilter]:
        filters = [
            MetadataFilter.equals("userId", user_id),
            MetadataFilter.equals("status", ContentStatus.ACTIVE.value),
        ]
        categories = self.expand_categories(request)
        if categories:
            filters.append(MetadataFilter.one_of("primaryCategory", categories))
        return filters

    def expand_categories(self, request: ContextRequest) -> list[str]:
        categories = list(request.categories)
        if request.include_related_categories and self._category_service is not None:
            for category_id in request.categories:
                categories.extend(c.id for c in self._category_service.get_related_categories(category_id))
        return list(dict.fromkeys(categories))
