"""Ingestion of uploaded documents (already text-extracted)."""

from __future__ import annotations

import logging
from pathlib import PurePath

from content_rag.ingestion.base import ContentIngestion
from content_rag.ingestion.text import clean_terms, reading_time_minutes, sanitize_text, summarize
from content_rag.models import (
    ContentChunk,
    ContentMetadata,
    ContentReference,
    ContentType,
    DocumentDetails,
    DocumentInput,
    ProcessedContent,
    ValidationResult,
    utc_now,
)

logger = logging.getLogger(__name__)


class DocumentIngestion(ContentIngestion):
    """Large prose: markdown-aware chunks with generous overlap."""

    content_type = ContentType.DOCUMENT
    record_id_format = "{content_id}-{chunk_index}"
    default_chunk_size = 1000
    default_chunk_overlap = 200
    default_batch_size = 100

    def preprocess(self, content: DocumentInput) -> ProcessedContent:
        text = sanitize_text(content.content or "")
        self.require_text_and_user(text, content.user_id)

        content_id = self.content_id_for(content.id, content.user_id)
        logger.info("Preprocessing document %s (%d chars)", content_id, len(text))

        analysis = self.analyze(text)
        complexity = self._analyzer.assess_complexity(text)
        now = utc_now()
        created_at = content.created_at or now

        metadata = ContentMetadata(
            content_type=ContentType.DOCUMENT,
            content_id=content_id,
            user_id=content.user_id,
            created_at=created_at,
            updated_at=max(now, created_at),
            access=content.access,
            shared_with=clean_terms(content.shared_with) if content.access == "shared" else [],
            categories=clean_terms(content.categories) or ["document"],
            tags=clean_terms(content.tags),
            title=content.title or PurePath(content.file_name).stem,
            text=text,
            summary=summarize(text),
            searchable_text=text,
            keywords=analysis.topics,
            language=analysis.language,
            source=content.source,
            references=clean_terms(content.references),
            document=DocumentDetails(
                file_type=content.file_type,
                file_name=content.file_name,
                file_size=content.file_size if content.file_size is not None else len(text.encode("utf-8")),
                mime_type=content.file_type,
                page_count=content.page_count,
                reading_time=reading_time_minutes(text),
                complexity=complexity,
                topic_model=analysis.topics,
            ),
        )
        return ProcessedContent(content_id=content_id, raw_content=text, metadata=metadata)

    def validate(self, content: ProcessedContent) -> ValidationResult:
        errors: list[str] = []
        if not content.raw_content.strip():
            errors.append("Content cannot be empty")
        if not content.metadata.user_id:
            errors.append("User ID is required")
        if not content.metadata.content_id:
            errors.append("Content ID is required")
        return ValidationResult(is_valid=not errors, errors=errors)

    def extract_keywords(self, chunk: ContentChunk) -> list[str]:
        # Documents rely on the analyzer topics rather than inline markup.
        return list(chunk.metadata.keywords)

    def process_references(self, content: ProcessedContent) -> list[ContentReference]:
        references = super().process_references(content)
        references.extend(
            ContentReference(id=ref, type="document", context=f"Referenced from {content.content_id}")
            for ref in content.metadata.references
        )
        return references
