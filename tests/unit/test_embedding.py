"""Unit tests for the embedding service and cosine similarity."""

from __future__ import annotations

import pytest
from langchain_core.embeddings import Embeddings

from content_rag.errors import DimensionMismatchError, EmbeddingError
from content_rag.retrieval.embedding import EmbeddingService, cosine_similarity


class FlakyEmbeddings(Embeddings):
    """Fails the first *failures* calls, then returns a fixed vector."""

    def __init__(self, failures: int, vector: list[float] | None = None) -> None:
        self.failures = failures
        self.calls = 0
        self.vector = vector or [1.0, 0.0, 0.0]

    def _maybe_fail(self) -> None:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("model endpoint unreachable")

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self._maybe_fail()
        return [list(self.vector) for _ in texts]

    def embed_query(self, text: str) -> list[float]:
        self._maybe_fail()
        return list(self.vector)


class TestCosineSimilarity:
    def test_identical_vectors(self) -> None:
        assert cosine_similarity([0.3, 0.4], [0.3, 0.4]) == pytest.approx(1.0)

    def test_opposite_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_orthogonal_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 2.0]) == pytest.approx(0.0)

    def test_zero_vector(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_never_exceeds_bounds(self) -> None:
        v = [0.1, 0.2, 0.7]
        assert -1.0 <= cosine_similarity(v, v) <= 1.0

    def test_dimension_mismatch(self) -> None:
        with pytest.raises(DimensionMismatchError):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestEmbeddingService:
    def test_embed_is_deterministic(self, embedding_service: EmbeddingService) -> None:
        assert embedding_service.embed("same text") == embedding_service.embed("same text")

    def test_dimension_learned_from_first_vector(self, embedding_service: EmbeddingService) -> None:
        embedding_service.embed("hello")
        assert embedding_service.dimension == 256

    def test_embed_many_preserves_order(self, embedding_service: EmbeddingService) -> None:
        texts = [f"text {i}" for i in range(7)]
        batched = embedding_service.embed_many(texts, batch_size=3)
        assert batched == [embedding_service.embed(t) for t in texts]

    def test_retries_then_succeeds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        waits: list[float] = []
        monkeypatch.setattr("content_rag.retrieval.embedding.time.sleep", waits.append)
        service = EmbeddingService(FlakyEmbeddings(failures=2), max_retries=3, backoff_seconds=0.5)
        assert service.embed("x") == [1.0, 0.0, 0.0]
        assert waits == [0.5, 1.0]

    def test_gives_up_after_max_retries(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("content_rag.retrieval.embedding.time.sleep", lambda _: None)
        flaky = FlakyEmbeddings(failures=10)
        service = EmbeddingService(flaky, max_retries=3, backoff_seconds=0.1)
        with pytest.raises(EmbeddingError, match="after 3 attempts"):
            service.embed("x")
        assert flaky.calls == 3

    def test_mismatched_dimension_rejected(self) -> None:
        service = EmbeddingService(FlakyEmbeddings(failures=0), dimension=384)
        with pytest.raises(DimensionMismatchError):
            service.embed("x")

    def test_similarity_of_related_texts(self, embedding_service: EmbeddingService) -> None:
        a = embedding_service.embed("quarterly budget planning")
        b = embedding_service.embed("budget planning for the quarter")
        c = embedding_service.embed("morning run in the park")
        assert embedding_service.similarity(a, b) > embedding_service.similarity(a, c)
