"""Context optimizer — rank candidate chunks and fit them into a token budget."""

from __future__ import annotations

import logging

from content_rag.config import settings
from content_rag.retrieval.embedding import EmbeddingService
from content_rag.retrieval.models import ContextChunk, ContextRequest

logger = logging.getLogger(__name__)


class ContextOptimizer:
    """Select a relevance-ordered, token-bounded subset of chunks.

    Selection is greedy: chunks are accepted in ranked order until one
    would overflow the token budget or ``max_chunks`` is reached.  A chunk
    that does not fit ends the scan; no smaller chunk is substituted.

    Parameters
    ----------
    embedding_service:
        Used to embed the query and any chunk lacking an embedding.
    max_tokens:
        Default token budget, overridable per request.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        *,
        max_tokens: int = settings.context_max_tokens,
    ) -> None:
        self._embedding_service = embedding_service
        self.max_tokens = max_tokens

    def optimize(
        self,
        chunks: list[ContextChunk],
        request: ContextRequest,
        *,
        query_embedding: list[float] | None = None,
    ) -> list[ContextChunk]:
        """Score, filter and greedily select *chunks* for *request*.

        Parameters
        ----------
        chunks:
            Candidate passages; their order breaks score ties.
        request:
            Query plus selection limits.
        query_embedding:
            Pre-computed query vector, when the caller already has one.

        Returns
        -------
        list[ContextChunk]
            Copies of the selected chunks with ``embedding`` and
            ``relevance_score`` filled in, best first.
        """
        if not chunks:
            return []

        if query_embedding is None:
            query_embedding = self._embedding_service.embed(request.query)

        missing = [i for i, c in enumerate(chunks) if c.embedding is None]
        computed = self._embedding_service.embed_many([chunks[i].content for i in missing]) if missing else []
        embeddings = {i: vector for i, vector in zip(missing, computed)}

        scored: list[ContextChunk] = []
        for i, chunk in enumerate(chunks):
            embedding = chunk.embedding if chunk.embedding is not None else embeddings[i]
            score = self._embedding_service.similarity(query_embedding, embedding)
            scored.append(chunk.model_copy(update={"embedding": embedding, "relevance_score": score}))

        # sorted() is stable: equal scores keep their input order.
        ranked = sorted(scored, key=lambda c: c.relevance_score, reverse=True)
        relevant = [c for c in ranked if c.relevance_score >= request.min_relevance]

        budget = request.max_tokens or self.max_tokens
        token_count = 0.0
        selected: list[ContextChunk] = []
        for chunk in relevant:
            if len(selected) >= request.max_chunks:
                break
            tokens = chunk.estimated_tokens
            if token_count + tokens > budget:
                break
            selected.append(chunk)
            token_count += tokens

        logger.info(
            "Selected %d/%d chunks (%d above min relevance %.2f, ~%d tokens of %d)",
            len(selected), len(chunks), len(relevant), request.min_relevance, token_count, budget,
        )
        return selected
