"""Ingestion of free-form user notes."""

from __future__ import annotations

import logging

from content_rag.ingestion.base import ContentIngestion
from content_rag.ingestion.text import (
    checklist_progress,
    clean_terms,
    contains_code,
    extract_mentions,
    has_open_checkboxes,
    sanitize_text,
    summarize,
)
from content_rag.models import (
    ContentChunk,
    ContentMetadata,
    ContentReference,
    ContentType,
    NoteDetails,
    NoteInput,
    ProcessedContent,
    ValidationResult,
    utc_now,
)

logger = logging.getLogger(__name__)

MAX_NOTE_CHARS = 50_000


class NoteIngestion(ContentIngestion):
    """Notes: markdown chunks with a smaller overlap, hashtags and mentions as keywords."""

    content_type = ContentType.NOTE
    record_id_format = "{content_id}_chunk_{chunk_index}"
    default_chunk_size = 1000
    default_chunk_overlap = 100
    default_batch_size = 5

    def preprocess(self, content: NoteInput) -> ProcessedContent:
        text = sanitize_text(content.content or "")
        self.require_text_and_user(text, content.user_id)

        content_id = self.content_id_for(content.id, content.user_id)
        logger.info("Preprocessing note %s (%d chars)", content_id, len(text))

        analysis = self.analyze(text)
        now = utc_now()
        metadata = ContentMetadata(
            content_type=ContentType.NOTE,
            content_id=content_id,
            user_id=content.user_id,
            created_at=now,
            updated_at=now,
            access=content.access,
            shared_with=clean_terms(content.shared_with) if content.access == "shared" else [],
            categories=clean_terms(content.categories) or ["general"],
            tags=clean_terms(content.tags),
            title=content.title or f"Note - {now:%Y-%m-%d}",
            text=text,
            summary=summarize(text),
            searchable_text=text,
            keywords=analysis.topics,
            language=analysis.language,
            source="user_input",
            note=NoteDetails(
                is_pinned=content.is_pinned,
                is_starred=content.is_starred,
                color=content.color,
                format=content.format,
                has_checkboxes=has_open_checkboxes(text),
                checklist_progress=checklist_progress(text),
                contains_code=contains_code(text),
                context=content.context,
                associated_date=content.associated_date,
                last_edited_by=content.user_id,
            ),
        )
        return ProcessedContent(content_id=content_id, raw_content=text, metadata=metadata)

    def validate(self, content: ProcessedContent) -> ValidationResult:
        errors: list[str] = []
        if not content.raw_content:
            errors.append("Note content is empty")
        elif len(content.raw_content) > MAX_NOTE_CHARS:
            errors.append(f"Note exceeds maximum length of {MAX_NOTE_CHARS:,} characters")
        return ValidationResult(is_valid=not errors, errors=errors)

    def extract_metadata(self, content: ProcessedContent) -> ContentMetadata:
        metadata = super().extract_metadata(content)
        text = content.raw_content
        note = (metadata.note or NoteDetails()).model_copy(
            update={
                "has_checkboxes": has_open_checkboxes(text),
                "checklist_progress": checklist_progress(text),
                "contains_code": contains_code(text),
            }
        )
        return metadata.model_copy(update={"note": note})

    def salient_fields(self, chunk: ContentChunk) -> list[str]:
        return self.extract_keywords(chunk)

    def process_references(self, content: ProcessedContent) -> list[ContentReference]:
        references = super().process_references(content)
        references.extend(
            ContentReference(id=mention, type="user", context="mentioned")
            for mention in extract_mentions(content.raw_content)
        )
        return references
