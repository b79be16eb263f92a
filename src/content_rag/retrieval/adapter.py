"""Vector-store adapter — the only place metadata gets flattened.

The adapter sits between the ingestion strategies and a concrete
:class:`~content_rag.retrieval.base.VectorStoreBase`.  It encodes
structured :class:`~content_rag.models.ContentMetadata` into the store's
scalar-only schema on the way in, decodes it on the way out, writes in
fixed-size batches with a static inter-batch delay, and turns backend
exceptions into :class:`~content_rag.errors.StoreError`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from content_rag.config import settings
from content_rag.errors import StoreError
from content_rag.ingestion.text import unique
from content_rag.models import ContentStatus, EmbeddedChunk, StorageResult, utc_now
from content_rag.retrieval.base import VectorStoreBase
from content_rag.retrieval.codec import (
    decode_metadata,
    encode_metadata,
    escape_reference,
    join_list,
    split_list,
)
from content_rag.retrieval.models import ContextChunk, MetadataFilter, StoredVector, VectorRecord

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except StoreError:
        raise
    except Exception as exc:
        raise StoreError(f"Vector store failed to {action}: {exc}") from exc


class VectorStoreAdapter:
    """Batching, encoding facade over a vector-store backend.

    Parameters
    ----------
    store:
        Concrete backend.
    batch_delay_seconds:
        Pause between consecutive upsert batches of one ``store_chunks``
        call. Not applied after the last batch.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        *,
        batch_delay_seconds: float = settings.store_batch_delay_seconds,
    ) -> None:
        self._store = store
        self.batch_delay_seconds = batch_delay_seconds

    @property
    def store(self) -> VectorStoreBase:
        return self._store

    # -- writes ---------------------------------------------------------------

    def store_chunks(self, chunks: list[EmbeddedChunk], *, batch_size: int = 100) -> StorageResult:
        """Upsert *chunks* in order, ``batch_size`` records at a time.

        A failing batch aborts the remaining ones; earlier batches stay
        written, so re-ingesting the same content id overwrites them.
        When *content_id* is already stored, the new chunks take a version
        above the stored one and keep the original ``createdAt``.
        """
        if not chunks:
            raise StoreError("No embedded chunks to store")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        content_id = chunks[0].metadata.content_id
        chunks = self._carry_forward(content_id, chunks)
        indexed_at = utc_now()
        records = [
            VectorRecord(
                id=chunk.id,
                values=chunk.values,
                metadata=encode_metadata(chunk.metadata, indexed_at=indexed_at),
                document=chunk.metadata.text,
            )
            for chunk in chunks
        ]

        total_batches = -(-len(records) // batch_size)
        for batch_no, start in enumerate(range(0, len(records), batch_size), 1):
            batch = records[start : start + batch_size]
            with _store_errors(f"store batch {batch_no}/{total_batches} of {content_id}"):
                self._store.upsert(batch)
            logger.info(
                "Stored batch %d/%d for %s (%d records)",
                batch_no, total_batches, content_id, len(batch),
            )
            if batch_no < total_batches and self.batch_delay_seconds > 0:
                time.sleep(self.batch_delay_seconds)

        return StorageResult(
            content_id=content_id,
            chunk_count=len(chunks),
            metadata=chunks[0].metadata,
        )

    def merge_references(self, content_id: str, reference_ids: list[str]) -> list[str]:
        """Union *reference_ids* into the ``references`` of every stored chunk.

        Returns the merged reference list of the first chunk.
        """
        existing = self._records_for(content_id)
        if not existing:
            raise StoreError(f"Content {content_id} not found")
        reference_ids = [escape_reference(r) for r in reference_ids]

        ids: list[str] = []
        metadatas = []
        merged: list[str] = []
        for record in existing:
            merged = unique(split_list(record.metadata.get("references")) + list(reference_ids))
            ids.append(record.id)
            metadatas.append({**record.metadata, "references": join_list(merged)})

        with _store_errors(f"link references of {content_id}"):
            self._store.update_metadata(ids, metadatas)
        logger.info("Linked %d references to content %s", len(reference_ids), content_id)
        return unique(split_list(metadatas[0]["references"]))

    def mark_deleted(self, content_id: str) -> int:
        """Logically delete *content_id*: status, updatedAt and version bump."""
        existing = self._records_for(content_id)
        ids: list[str] = []
        metadatas = []
        for record in existing:
            metadata = decode_metadata(record.metadata)
            updated = metadata.model_copy(
                update={
                    "status": ContentStatus.DELETED,
                    "updated_at": max(utc_now(), metadata.created_at),
                    "version": metadata.version + 1,
                }
            )
            ids.append(record.id)
            metadatas.append(encode_metadata(updated))
        with _store_errors(f"mark {content_id} deleted"):
            self._store.update_metadata(ids, metadatas)
        logger.info("Marked %d chunks of %s as deleted", len(ids), content_id)
        return len(ids)

    def purge(self, content_id: str) -> int:
        """Physically remove every chunk of *content_id*."""
        ids = [record.id for record in self._records_for(content_id)]
        with _store_errors(f"purge {content_id}"):
            self._store.delete(ids)
        logger.info("Purged %d chunks of %s", len(ids), content_id)
        return len(ids)

    # -- reads ----------------------------------------------------------------

    def fetch_content(self, content_id: str) -> list[ContextChunk]:
        """Return all stored chunks of *content_id* ordered by chunk index."""
        chunks = [self._to_context_chunk(r) for r in self._records_for(content_id)]
        return sorted(chunks, key=lambda c: c.metadata.chunk_index if c.metadata else 0)

    def query(
        self,
        embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[ContextChunk]:
        """Nearest-neighbour search returning decoded candidate chunks."""
        with _store_errors("query"):
            hits = self._store.query(embedding, k=k, filters=filters)
        return [self._to_context_chunk(hit) for hit in hits]

    def health_check(self) -> bool:
        return self._store.health_check()

    # -- internals ------------------------------------------------------------

    def _records_for(self, content_id: str) -> list[StoredVector]:
        with _store_errors(f"fetch {content_id}"):
            return self._store.get(filters=[MetadataFilter.equals("contentId", content_id)])

    def _carry_forward(self, content_id: str, chunks: list[EmbeddedChunk]) -> list[EmbeddedChunk]:
        stored = [decode_metadata(r.metadata) for r in self._records_for(content_id) if r.metadata]
        if not stored:
            return chunks
        version = max(m.version for m in stored) + 1
        created_at = min(m.created_at for m in stored)
        carried = []
        for chunk in chunks:
            metadata = chunk.metadata.model_copy(
                update={
                    "version": max(version, chunk.metadata.version),
                    "created_at": created_at,
                    "updated_at": max(chunk.metadata.updated_at, created_at),
                }
            )
            carried.append(chunk.model_copy(update={"metadata": metadata}))
        logger.info("Re-ingesting %s as version %d", content_id, version)
        return carried

    @staticmethod
    def _to_context_chunk(record: StoredVector) -> ContextChunk:
        metadata = decode_metadata(record.metadata) if record.metadata else None
        content = record.document or (metadata.text if metadata else "")
        return ContextChunk(
            id=record.id,
            content=content,
            embedding=record.values,
            relevance_score=record.score,
            metadata=metadata,
        )
