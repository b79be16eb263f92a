"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from content_rag.config import settings
from content_rag.retrieval.base import VectorStoreBase
from content_rag.retrieval.models import MetadataFilter, ScalarValue, StoredVector, VectorRecord

logger = logging.getLogger(__name__)

_OP_MAP = {
    "eq": "$eq",
    "ne": "$ne",
    "gt": "$gt",
    "gte": "$gte",
    "lt": "$lt",
    "lte": "$lte",
    "in": "$in",
    "nin": "$nin",
}


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _column(results: Any, key: str, size: int) -> list[Any]:
    """Return a result column, padding with ``None`` when not included."""
    values = results.get(key)
    if values is None:
        return [None] * size
    return list(values)


def _first_row(results: Any, key: str, size: int) -> list[Any]:
    """Return the first row of a batched query column (one query per call)."""
    rows = results.get(key)
    if rows is None or len(rows) == 0 or rows[0] is None:
        return [None] * size
    return list(rows[0])


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store using cosine distance.

    Vectors are always supplied by the caller, so the collection is
    created without an embedding function.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client (e.g. ``chromadb.EphemeralClient()``);
        when given, *host* and *port* are ignored.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        client: Any | None = None,
    ) -> None:
        super().__init__(collection_name)
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": "cosine"},
            embedding_function=None,
        )

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(self, records: list[VectorRecord]) -> None:
        if not records:
            return
        self._collection.upsert(
            ids=[r.id for r in records],
            embeddings=[r.values for r in records],
            documents=[r.document for r in records],
            metadatas=[r.metadata for r in records],
        )

    def query(
        self,
        embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[StoredVector]:
        results = self._collection.query(
            query_embeddings=[embedding],
            n_results=k,
            where=_build_chroma_where(filters) if filters else None,
            include=["documents", "metadatas", "distances", "embeddings"],
        )

        ids = results["ids"][0]
        size = len(ids)
        docs = _first_row(results, "documents", size)
        metas = _first_row(results, "metadatas", size)
        distances = _first_row(results, "distances", size)
        embeddings = _first_row(results, "embeddings", size)

        hits: list[StoredVector] = []
        for doc_id, content, meta, dist, emb in zip(ids, docs, metas, distances, embeddings):
            hits.append(
                StoredVector(
                    id=doc_id,
                    values=[float(v) for v in emb] if emb is not None else None,
                    metadata=meta or {},
                    document=content or "",
                    # Cosine space: distance = 1 - similarity.
                    score=1.0 - dist if dist is not None else None,
                )
            )
        return hits

    def get(
        self,
        *,
        ids: list[str] | None = None,
        filters: list[MetadataFilter] | None = None,
    ) -> list[StoredVector]:
        results = self._collection.get(
            ids=ids,
            where=_build_chroma_where(filters) if filters else None,
            include=["documents", "metadatas", "embeddings"],
        )
        found = results["ids"]
        docs = _column(results, "documents", len(found))
        metas = _column(results, "metadatas", len(found))
        embeddings = _column(results, "embeddings", len(found))
        return [
            StoredVector(
                id=doc_id,
                values=[float(v) for v in emb] if emb is not None else None,
                metadata=meta or {},
                document=content or "",
            )
            for doc_id, content, meta, emb in zip(found, docs, metas, embeddings)
        ]

    def update_metadata(self, ids: list[str], metadatas: list[dict[str, ScalarValue]]) -> None:
        if ids:
            self._collection.update(ids=ids, metadatas=metadatas)

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def delete(self, ids: list[str]) -> None:
        if ids:
            self._collection.delete(ids=ids)
