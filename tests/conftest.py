"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import math
import re
from collections.abc import Iterator
from typing import Any

import pytest
from langchain_core.embeddings import Embeddings

from content_rag.config import Settings
from content_rag.retrieval.adapter import VectorStoreAdapter
from content_rag.retrieval.base import VectorStoreBase
from content_rag.retrieval.embedding import EmbeddingService, cosine_similarity
from content_rag.retrieval.models import MetadataFilter, ScalarValue, StoredVector, VectorRecord
from content_rag.services import Services, build_services


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class DeterministicEmbeddings(Embeddings):
    """Bag-of-words hashing embedder: same text → same vector, shared words → closer."""

    def __init__(self, dim: int = 256) -> None:
        self.dim = dim
        self.calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self.dim
        for word in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dim
            vector[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            vector[0] = 1.0
            return vector
        return [v / norm for v in vector]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.extend(texts)
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        return self._vector(text)


def _matches(metadata: dict[str, ScalarValue], f: MetadataFilter) -> bool:
    value = metadata.get(f.field)
    if f.operator == "eq":
        return value == f.value
    if f.operator == "ne":
        return value != f.value
    if f.operator == "in":
        return value in f.value
    if f.operator == "nin":
        return value not in f.value
    raise ValueError(f"Unsupported filter operator: {f.operator!r}")


class FakeVectorStore(VectorStoreBase):
    """In-memory store keyed by record id (upsert overwrites)."""

    def __init__(self, fail_on_batch: int | None = None) -> None:
        super().__init__("test-collection")
        self.records: dict[str, VectorRecord] = {}
        self.upsert_batches: list[list[str]] = []
        self.fail_on_batch = fail_on_batch
        self.healthy = True

    def upsert(self, records: list[VectorRecord]) -> None:
        if self.fail_on_batch is not None and len(self.upsert_batches) + 1 == self.fail_on_batch:
            raise ConnectionError("vector store unavailable")
        self.upsert_batches.append([r.id for r in records])
        for record in records:
            self.records[record.id] = record.model_copy(deep=True)

    def _select(self, ids: list[str] | None, filters: list[MetadataFilter] | None) -> list[VectorRecord]:
        selected = [r for r in self.records.values() if ids is None or r.id in ids]
        return [r for r in selected if all(_matches(r.metadata, f) for f in filters or [])]

    def query(
        self,
        embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[StoredVector]:
        hits = [
            StoredVector(
                id=r.id,
                values=list(r.values),
                metadata=dict(r.metadata),
                document=r.document,
                score=cosine_similarity(embedding, r.values),
            )
            for r in self._select(None, filters)
        ]
        return sorted(hits, key=lambda h: h.score, reverse=True)[:k]

    def get(
        self,
        *,
        ids: list[str] | None = None,
        filters: list[MetadataFilter] | None = None,
    ) -> list[StoredVector]:
        return [
            StoredVector(id=r.id, values=list(r.values), metadata=dict(r.metadata), document=r.document)
            for r in self._select(ids, filters)
        ]

    def update_metadata(self, ids: list[str], metadatas: list[dict[str, ScalarValue]]) -> None:
        for record_id, metadata in zip(ids, metadatas):
            self.records[record_id].metadata = dict(metadata)

    def health_check(self) -> bool:
        return self.healthy

    def delete(self, ids: list[str]) -> None:
        for record_id in ids:
            self.records.pop(record_id, None)


class FailingLLM:
    """Chat-model stand-in whose every call raises."""

    def invoke(self, prompt: Any) -> Any:
        raise TimeoutError("analysis model timed out")


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record ``time.sleep`` calls instead of sleeping."""
    calls: list[float] = []
    monkeypatch.setattr("content_rag.retrieval.adapter.time.sleep", calls.append)
    return calls


@pytest.fixture()
def embeddings() -> DeterministicEmbeddings:
    return DeterministicEmbeddings()


@pytest.fixture()
def embedding_service(embeddings: DeterministicEmbeddings) -> EmbeddingService:
    return EmbeddingService(embeddings, dimension=0, max_retries=3, backoff_seconds=0.0)


@pytest.fixture()
def fake_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture()
def adapter(fake_store: FakeVectorStore, sleeps: list[float]) -> VectorStoreAdapter:
    return VectorStoreAdapter(fake_store, batch_delay_seconds=1.0)


@pytest.fixture()
def app_settings() -> Settings:
    return Settings(
        analyzer_enabled=False,
        embed_backoff_seconds=0.0,
        store_batch_delay_seconds=0.0,
        ingest_workers=1,
    )


@pytest.fixture()
def services(
    app_settings: Settings,
    embeddings: DeterministicEmbeddings,
    fake_store: FakeVectorStore,
) -> Iterator[Services]:
    built = build_services(app_settings, embeddings=embeddings, store=fake_store)
    yield built
    built.close()


@pytest.fixture()
def failing_llm() -> FailingLLM:
    return FailingLLM()
