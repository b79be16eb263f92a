"""Embedding service — text → vector, plus cosine similarity."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, TypeVar

from content_rag.config import Settings, settings
from content_rag.errors import DimensionMismatchError, EmbeddingError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings
    from langchain_huggingface import HuggingFaceEmbeddings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_embedding_function(config: Settings | None = None) -> HuggingFaceEmbeddings:
    """Return the configured sentence-transformer embedding function."""
    from langchain_huggingface import HuggingFaceEmbeddings

    config = config or settings
    return HuggingFaceEmbeddings(model_name=config.embedding_model)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of *a* and *b*; ``0.0`` when either has zero norm."""
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))
    dot = norm_a = norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    # Clamp float drift so similarity(a, a) never exceeds 1.
    return max(-1.0, min(1.0, similarity))


class EmbeddingService:
    """Wrap a LangChain ``Embeddings`` model with retries and dimension checks.

    Parameters
    ----------
    embeddings:
        The underlying model. When *None*, a HuggingFace sentence-transformer
        is built from the global settings.
    dimension:
        Expected vector length. ``0`` learns it from the first response;
        every later vector must then match.
    max_retries:
        Attempts per call before giving up with :class:`EmbeddingError`.
    backoff_seconds:
        Base delay; attempt *n* waits ``backoff_seconds * 2**(n-1)``.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        dimension: int = settings.embedding_dim,
        max_retries: int = settings.embed_max_retries,
        backoff_seconds: float = settings.embed_backoff_seconds,
    ) -> None:
        self._embeddings = embeddings if embeddings is not None else get_embedding_function()
        self.dimension = dimension
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds

    # -- public API -----------------------------------------------------------

    def embed(self, text: str) -> list[float]:
        """Embed a single text (query or chunk)."""
        vector = self._call(lambda: self._embeddings.embed_query(text), f"text of {len(text)} chars")
        return self._checked(vector)

    def embed_many(self, texts: list[str], batch_size: int = 64) -> list[list[float]]:
        """Embed *texts* in batches, preserving order."""
        vectors: list[list[float]] = []
        for start in range(0, len(texts), batch_size):
            batch = texts[start : start + batch_size]
            result = self._call(
                lambda: self._embeddings.embed_documents(batch),
                f"batch of {len(batch)} texts",
            )
            if len(result) != len(batch):
                raise EmbeddingError(f"Expected {len(batch)} embeddings, got {len(result)}")
            vectors.extend(self._checked(v) for v in result)
            logger.debug("embedded %d / %d", len(vectors), len(texts))
        return vectors

    def similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        return cosine_similarity(a, b)

    # -- internals ------------------------------------------------------------

    def _call(self, fn: Callable[[], T], what: str) -> T:
        last_exc: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            started = time.monotonic()
            try:
                result = fn()
            except Exception as exc:
                last_exc = exc
                if attempt < self.max_retries:
                    wait = self.backoff_seconds * 2 ** (attempt - 1)
                    logger.warning(
                        "Embedding retry %d/%d for %s (wait %.1fs): %s",
                        attempt, self.max_retries, what, wait, exc,
                    )
                    time.sleep(wait)
                continue
            logger.debug("Embedded %s in %.1fms", what, (time.monotonic() - started) * 1000)
            return result
        raise EmbeddingError(
            f"Failed to generate embedding for {what} after {self.max_retries} attempts: {last_exc}"
        ) from last_exc

    def _checked(self, vector: Sequence[float]) -> list[float]:
        values = [float(v) for v in vector]
        if not values:
            raise EmbeddingError("Embedding model returned an empty vector")
        if self.dimension == 0:
            self.dimension = len(values)
        elif len(values) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(values))
        return values
