"""Exception hierarchy for the ingestion and retrieval pipeline.

    ContentRAGError  (base)
    +-- ValidationError              bad input, fixable by the caller
    +-- EmbeddingError               embedding model call failed
    +-- StoreError                   vector store call failed
    +-- DimensionMismatchError       vectors from mismatched models
    +-- UnsupportedContentTypeError  no strategy registered for a kind

Each error may carry the pipeline ``stage`` it surfaced from; the
orchestrator fills it in so log lines and API responses name the stage.
"""

from __future__ import annotations


class ContentRAGError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str = "Content pipeline error", stage: str | None = None) -> None:
        self.message = message
        self.stage = stage
        super().__init__(message)

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class ValidationError(ContentRAGError):
    """Raised when content fails preprocessing or validation."""

    def __init__(self, message: str = "Content validation failed", errors: list[str] | None = None, stage: str | None = None) -> None:
        self.errors = list(errors or [])
        if self.errors:
            message = f"{message}: {', '.join(self.errors)}"
        super().__init__(message, stage=stage)


class EmbeddingError(ContentRAGError):
    """Raised when the embedding model call fails."""


class StoreError(ContentRAGError):
    """Raised when a vector store read or write fails."""


class DimensionMismatchError(ContentRAGError):
    """Raised when two vectors (or a vector and the index) differ in length."""

    def __init__(self, expected: int, actual: int, stage: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Embedding dimension mismatch: {expected} vs {actual}", stage=stage)


class UnsupportedContentTypeError(ContentRAGError):
    """Raised when no ingestion strategy is registered for a content type."""

    def __init__(self, content_type: object, stage: str | None = None) -> None:
        self.content_type = content_type
        super().__init__(f"Unknown content type: {content_type!r}", stage=stage)
