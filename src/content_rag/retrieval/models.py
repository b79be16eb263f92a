"""Domain models for vector records, filters and retrieved context."""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, Field

from content_rag.models import ContentMetadata

ScalarValue = Union[str, int, float, bool]


class MetadataFilter(BaseModel):
    """Declarative metadata filter for vector-store queries.

    Attributes
    ----------
    field:
        The flat metadata key to filter on (e.g. ``"userId"``, ``"status"``).
    operator:
        Comparison operator — one of ``eq``, ``ne``, ``gt``, ``gte``,
        ``lt``, ``lte``, ``in``, ``nin``.
    value:
        The value (or list of values for ``in`` / ``nin``) to compare against.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def not_equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="ne", value=value)

    @classmethod
    def one_of(cls, field: str, values: list[Any]) -> MetadataFilter:
        return cls(field=field, operator="in", value=values)


class VectorRecord(BaseModel):
    """One chunk as the vector store sees it: flat, scalar-only metadata."""

    id: str
    values: list[float]
    metadata: dict[str, ScalarValue] = Field(default_factory=dict)
    document: str = ""


class StoredVector(BaseModel):
    """A record read back from the store, optionally with a distance score."""

    id: str
    values: list[float] | None = None
    metadata: dict[str, ScalarValue] = Field(default_factory=dict)
    document: str = ""
    score: float | None = None


class ContextChunk(BaseModel):
    """A candidate passage for query context.

    ``embedding`` is computed lazily by the optimizer when absent.
    """

    content: str
    id: str | None = None
    embedding: list[float] | None = None
    relevance_score: float | None = None
    metadata: ContentMetadata | None = None

    @property
    def estimated_tokens(self) -> float:
        """Rough token estimate: whitespace-separated words × 1.3."""
        return len(self.content.split()) * 1.3


class ContextRequest(BaseModel):
    """Parameters for selecting context for one query."""

    query: str
    max_chunks: int = Field(default=5, ge=1)
    min_relevance: float = 0.0
    max_tokens: int | None = Field(default=None, ge=1)
    categories: list[str] = Field(default_factory=list)
    include_related_categories: bool = False
