"""Ingestion strategy contract shared by every content kind.

One run moves a single input through six stages, strictly in order::

    preprocess → validate → chunk → embed → store → process/link references

Subclasses implement :meth:`ContentIngestion.preprocess` and
:meth:`ContentIngestion.validate` and tune the rest through class
attributes and small hooks.
"""

from __future__ import annotations

import logging
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from content_rag.errors import ValidationError
from content_rag.ingestion.analysis import ContentAnalysis, ContentAnalyzer
from content_rag.ingestion.chunker import split_markdown
from content_rag.ingestion.text import extract_hashtags, extract_markdown_links, extract_mentions, unique
from content_rag.models import (
    ContentChunk,
    ContentMetadata,
    ContentReference,
    ContentType,
    EmbeddedChunk,
    ProcessedContent,
    StorageResult,
    ValidationResult,
)
from content_rag.retrieval.adapter import VectorStoreAdapter
from content_rag.retrieval.embedding import EmbeddingService

logger = logging.getLogger(__name__)


def new_content_id(content_type: ContentType, user_id: str) -> str:
    """``{kind}-{user}-{millis}-{random}``: unique even within one millisecond."""
    return f"{content_type.value}-{user_id}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


class ContentIngestion(ABC):
    """Base class for a per-kind ingestion pipeline.

    Parameters
    ----------
    embedding_service:
        Embeds each chunk's searchable text.
    adapter:
        Vector-store adapter used by :meth:`store` and
        :meth:`link_related_content`.
    analyzer:
        Language / topic detection. When *None*, defaults are used.
    chunk_size, chunk_overlap, batch_size:
        Override the class defaults.
    """

    content_type: ClassVar[ContentType]
    #: Format of the vector record id; must be deterministic in
    #: ``(content_id, chunk_index)`` so re-ingestion overwrites.
    record_id_format: ClassVar[str] = "{content_id}-{chunk_index}"
    default_chunk_size: ClassVar[int] = 1000
    default_chunk_overlap: ClassVar[int] = 200
    default_batch_size: ClassVar[int] = 100

    def __init__(
        self,
        embedding_service: EmbeddingService,
        adapter: VectorStoreAdapter,
        analyzer: ContentAnalyzer | None = None,
        *,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        batch_size: int | None = None,
    ) -> None:
        self._embedding_service = embedding_service
        self._adapter = adapter
        self._analyzer = analyzer or ContentAnalyzer(None)
        self.chunk_size = chunk_size or self.default_chunk_size
        self.chunk_overlap = self.default_chunk_overlap if chunk_overlap is None else chunk_overlap
        self.batch_size = batch_size or self.default_batch_size

    # -- stages ---------------------------------------------------------------

    @abstractmethod
    def preprocess(self, content: Any) -> ProcessedContent:
        """Normalise *content* into a :class:`ProcessedContent`.

        Raises
        ------
        ValidationError
            When the normalised text is empty or the user id is missing.
        """
        ...

    @abstractmethod
    def validate(self, content: ProcessedContent) -> ValidationResult:
        """Check kind-specific constraints. Never raises."""
        ...

    def chunk(self, content: ProcessedContent) -> list[ContentChunk]:
        """Split on markdown / paragraph boundaries with overlap."""
        texts = split_markdown(content.raw_content, self.chunk_size, self.chunk_overlap)
        return [
            ContentChunk(text=text, metadata=content.metadata.for_chunk(index, len(texts), text=text))
            for index, text in enumerate(texts)
        ]

    def embed(self, chunks: list[ContentChunk]) -> list[EmbeddedChunk]:
        """Embed each chunk's searchable text, one chunk at a time, in order."""
        embedded: list[EmbeddedChunk] = []
        for chunk in chunks:
            keywords = unique(chunk.metadata.keywords + self.extract_keywords(chunk))
            chunk = chunk.model_copy(update={"metadata": chunk.metadata.model_copy(update={"keywords": keywords})})
            searchable_text = self.generate_searchable_text(chunk)
            metadata = chunk.metadata.model_copy(update={"searchable_text": searchable_text})
            embedded.append(
                EmbeddedChunk(
                    id=self.record_id(metadata),
                    values=self._embedding_service.embed(searchable_text),
                    metadata=metadata,
                )
            )
        logger.info("Embedded %d chunks of %s", len(embedded), chunks[0].metadata.content_id if chunks else "-")
        return embedded

    def store(self, chunks: list[EmbeddedChunk]) -> StorageResult:
        return self._adapter.store_chunks(chunks, batch_size=self.batch_size)

    def process_references(self, content: ProcessedContent) -> list[ContentReference]:
        """Markdown links found in the raw text; subclasses add their own."""
        return [
            ContentReference(id=url, type="link", context=label)
            for label, url in extract_markdown_links(content.raw_content)
        ]

    def link_related_content(self, content_id: str, references: list[ContentReference]) -> list[str]:
        """Merge reference ids into the stored record (set union)."""
        if not references:
            return []
        return self._adapter.merge_references(content_id, unique([r.id for r in references]))

    # -- metadata helpers -----------------------------------------------------

    def extract_metadata(self, content: ProcessedContent) -> ContentMetadata:
        """Re-run content analysis and return the refreshed metadata."""
        analysis = self.analyze(content.raw_content)
        return content.metadata.model_copy(
            update={"language": analysis.language, "keywords": analysis.topics}
        )

    def generate_searchable_text(self, chunk: ContentChunk) -> str:
        """Title, body, keywords, categories, tags and kind-specific fields."""
        metadata = chunk.metadata
        parts = [
            metadata.title,
            chunk.text,
            *metadata.keywords,
            metadata.primary_category,
            *metadata.secondary_categories,
            *metadata.tags,
            *self.salient_fields(chunk),
        ]
        return " ".join(" ".join(unique([p for p in parts if p])).split())

    def extract_keywords(self, chunk: ContentChunk) -> list[str]:
        """Hashtags and @mentions in the chunk body."""
        return unique(extract_hashtags(chunk.text) + extract_mentions(chunk.text))

    def salient_fields(self, chunk: ContentChunk) -> list[str]:
        """Extra kind-specific strings injected into the searchable text."""
        return []

    def record_id(self, metadata: ContentMetadata) -> str:
        return self.record_id_format.format(
            content_id=metadata.content_id, chunk_index=metadata.chunk_index
        )

    # -- shared preprocess helpers --------------------------------------------

    def analyze(self, text: str) -> ContentAnalysis:
        return self._analyzer.analyze(text)

    def require_text_and_user(self, text: str, user_id: str) -> None:
        if not text:
            raise ValidationError("Content cannot be empty", stage="preprocess")
        if not user_id:
            raise ValidationError("User ID is required", stage="preprocess")

    def content_id_for(self, requested: str | None, user_id: str) -> str:
        return requested or new_content_id(self.content_type, user_id)
