"""Unit tests for the vector-store adapter (batching, encoding, reference merging)."""

from __future__ import annotations

import pytest

from content_rag.errors import StoreError
from content_rag.models import ContentMetadata, ContentStatus, ContentType, EmbeddedChunk
from content_rag.retrieval.adapter import VectorStoreAdapter
from content_rag.retrieval.models import MetadataFilter


def _chunks(count: int, content_id: str = "note-u1-1") -> list[EmbeddedChunk]:
    base = ContentMetadata(
        content_type=ContentType.NOTE,
        content_id=content_id,
        user_id="u1",
        categories=["work"],
        title="Standup",
    )
    return [
        EmbeddedChunk(
            id=f"{content_id}_chunk_{i}",
            values=[1.0, float(i), 0.0],
            metadata=base.for_chunk(i, count, text=f"chunk {i} text"),
        )
        for i in range(count)
    ]


class TestStoreChunks:
    def test_batches_in_order_with_delay_between(self, adapter: VectorStoreAdapter, fake_store, sleeps) -> None:
        result = adapter.store_chunks(_chunks(12), batch_size=5)

        assert result.chunk_count == 12
        assert result.content_id == "note-u1-1"
        assert [len(b) for b in fake_store.upsert_batches] == [5, 5, 2]
        assert fake_store.upsert_batches[0][0] == "note-u1-1_chunk_0"
        # No delay after the final batch.
        assert sleeps == [1.0, 1.0]

    def test_single_batch_never_sleeps(self, adapter: VectorStoreAdapter, sleeps) -> None:
        adapter.store_chunks(_chunks(3), batch_size=100)
        assert sleeps == []

    def test_empty_input_rejected(self, adapter: VectorStoreAdapter) -> None:
        with pytest.raises(StoreError):
            adapter.store_chunks([])

    def test_failing_batch_aborts_remaining(self, adapter: VectorStoreAdapter, fake_store) -> None:
        fake_store.fail_on_batch = 2
        with pytest.raises(StoreError, match="batch 2/3") as excinfo:
            adapter.store_chunks(_chunks(12), batch_size=5)

        assert isinstance(excinfo.value.__cause__, ConnectionError)
        assert len(fake_store.upsert_batches) == 1
        assert len(fake_store.records) == 5

    def test_reingest_overwrites(self, adapter: VectorStoreAdapter, fake_store) -> None:
        adapter.store_chunks(_chunks(3))
        adapter.store_chunks(_chunks(3))
        assert len(fake_store.records) == 3

    def test_reingest_raises_version_and_keeps_created_at(self, adapter: VectorStoreAdapter) -> None:
        adapter.store_chunks(_chunks(2))
        (original, _) = adapter.fetch_content("note-u1-1")

        result = adapter.store_chunks(_chunks(2))

        assert result.metadata.version == 2
        for chunk in adapter.fetch_content("note-u1-1"):
            assert chunk.metadata.version == 2
            assert chunk.metadata.created_at == original.metadata.created_at
            assert chunk.metadata.updated_at >= chunk.metadata.created_at

    def test_records_carry_flat_metadata_and_text(self, adapter: VectorStoreAdapter, fake_store) -> None:
        adapter.store_chunks(_chunks(2))
        record = fake_store.records["note-u1-1_chunk_1"]
        assert record.document == "chunk 1 text"
        assert record.metadata["chunkIndex"] == "1"
        assert record.metadata["totalChunks"] == "2"
        assert "_system" in record.metadata


class TestReferences:
    def test_merge_is_a_union(self, adapter: VectorStoreAdapter, fake_store) -> None:
        adapter.store_chunks(_chunks(2))
        adapter.merge_references("note-u1-1", ["alice", "http://x"])
        merged = adapter.merge_references("note-u1-1", ["http://x", "bob"])

        assert merged == ["alice", "http://x", "bob"]
        for record in fake_store.records.values():
            assert record.metadata["references"] == "alice,http://x,bob"

    def test_comma_in_reference_is_kept_whole(self, adapter: VectorStoreAdapter, fake_store) -> None:
        adapter.store_chunks(_chunks(1))
        merged = adapter.merge_references("note-u1-1", ["http://x/search?q=a,b"])

        assert merged == ["http://x/search?q=a%2Cb"]
        assert fake_store.records["note-u1-1_chunk_0"].metadata["references"] == "http://x/search?q=a%2Cb"

    def test_unknown_content(self, adapter: VectorStoreAdapter) -> None:
        with pytest.raises(StoreError, match="not found"):
            adapter.merge_references("missing", ["x"])


class TestReads:
    def test_fetch_content_sorted_and_decoded(self, adapter: VectorStoreAdapter) -> None:
        adapter.store_chunks(list(reversed(_chunks(3))))
        chunks = adapter.fetch_content("note-u1-1")

        assert [c.metadata.chunk_index for c in chunks] == [0, 1, 2]
        assert chunks[0].content == "chunk 0 text"
        assert chunks[0].metadata.title == "Standup"

    def test_query_filters_and_scores(self, adapter: VectorStoreAdapter) -> None:
        adapter.store_chunks(_chunks(2, "note-u1-1"))
        adapter.store_chunks(_chunks(2, "note-u1-2"))
        hits = adapter.query(
            [1.0, 0.0, 0.0], k=10, filters=[MetadataFilter.equals("contentId", "note-u1-2")]
        )
        assert {h.metadata.content_id for h in hits} == {"note-u1-2"}
        assert all(h.relevance_score is not None for h in hits)

    def test_health_check(self, adapter: VectorStoreAdapter, fake_store) -> None:
        assert adapter.health_check() is True
        fake_store.healthy = False
        assert adapter.health_check() is False


class TestDeletion:
    def test_mark_deleted_bumps_version(self, adapter: VectorStoreAdapter) -> None:
        adapter.store_chunks(_chunks(2))
        assert adapter.mark_deleted("note-u1-1") == 2

        for chunk in adapter.fetch_content("note-u1-1"):
            assert chunk.metadata.status is ContentStatus.DELETED
            assert chunk.metadata.version == 2
            assert chunk.metadata.updated_at >= chunk.metadata.created_at

    def test_reingest_after_delete_restores_with_higher_version(self, adapter: VectorStoreAdapter) -> None:
        adapter.store_chunks(_chunks(2))
        adapter.mark_deleted("note-u1-1")

        adapter.store_chunks(_chunks(2))

        for chunk in adapter.fetch_content("note-u1-1"):
            assert chunk.metadata.status is ContentStatus.ACTIVE
            assert chunk.metadata.version == 3

    def test_purge_removes_records(self, adapter: VectorStoreAdapter, fake_store) -> None:
        adapter.store_chunks(_chunks(2))
        assert adapter.purge("note-u1-1") == 2
        assert fake_store.records == {}
