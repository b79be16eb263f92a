"""Abstract base class for vector-store backends.

Adding a new backend (Pinecone, Qdrant, pgvector …) only requires
subclassing :class:`VectorStoreBase` and implementing the abstract
methods.  Everything above it — metadata encoding, batching, reference
linking — is backend-agnostic and lives in
:class:`~content_rag.retrieval.adapter.VectorStoreAdapter`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from content_rag.retrieval.models import MetadataFilter, ScalarValue, StoredVector, VectorRecord


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Implementations receive flat, scalar-only metadata and must treat
    ``upsert`` as overwrite-by-id.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, records: list[VectorRecord]) -> None:
        """Insert or overwrite *records* keyed by their ``id``."""
        ...

    @abstractmethod
    def query(
        self,
        embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[StoredVector]:
        """Return the top-*k* records nearest to *embedding*.

        Results carry their stored vector in ``values`` and a similarity
        ``score`` (higher = more similar).
        """
        ...

    @abstractmethod
    def get(
        self,
        *,
        ids: list[str] | None = None,
        filters: list[MetadataFilter] | None = None,
    ) -> list[StoredVector]:
        """Fetch records by id and/or metadata filter (no ranking)."""
        ...

    @abstractmethod
    def update_metadata(self, ids: list[str], metadatas: list[dict[str, ScalarValue]]) -> None:
        """Replace the metadata of existing records, leaving vectors untouched."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def delete(self, ids: list[str]) -> None:
        """Delete records by their IDs.  Optional — raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")
