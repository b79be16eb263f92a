"""Ingestion of logged activities (workouts, study sessions, routines …)."""

from __future__ import annotations

import logging

from content_rag.ingestion.base import ContentIngestion
from content_rag.ingestion.text import clean_terms, sanitize_text, summarize, unique
from content_rag.models import (
    ActivityDetails,
    ActivityInput,
    ContentChunk,
    ContentMetadata,
    ContentReference,
    ContentType,
    ProcessedContent,
    ValidationResult,
    utc_now,
)

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_CHARS = 5_000


class ActivityIngestion(ContentIngestion):
    """Activities are short structured summaries and are never split."""

    content_type = ContentType.ACTIVITY
    record_id_format = "{content_id}_chunk_{chunk_index}"
    default_batch_size = 5

    def preprocess(self, content: ActivityInput) -> ProcessedContent:
        text = sanitize_text(content.description or "")
        self.require_text_and_user(text, content.user_id)

        content_id = self.content_id_for(content.id, content.user_id)
        logger.info("Preprocessing activity %s (%s)", content_id, content.activity_type)

        analysis = self.analyze(text)
        now = utc_now()
        start_time = content.start_time or now
        end_time = content.end_time or start_time
        categories = clean_terms([content.category, content.subcategory or ""]) or ["general"]

        metadata = ContentMetadata(
            content_type=ContentType.ACTIVITY,
            content_id=content_id,
            user_id=content.user_id,
            created_at=now,
            updated_at=now,
            access=content.access,
            shared_with=clean_terms(content.shared_with) if content.access == "shared" else [],
            categories=categories,
            tags=clean_terms(content.tags),
            title=f"{content.activity_type} Activity - {start_time:%Y-%m-%d}",
            text=text,
            summary=summarize(text),
            searchable_text=" ".join(
                p for p in (content.activity_type, content.category, content.subcategory, text, content.location) if p
            ),
            keywords=analysis.topics,
            language=analysis.language,
            source="user_input",
            activity=ActivityDetails(
                activity_type=content.activity_type,
                start_time=start_time,
                end_time=end_time,
                duration=content.duration,
                location=content.location,
                energy=content.energy or 0,
                productivity=content.productivity or 0,
                satisfaction=content.satisfaction or 0,
                goal_id=content.goal_id,
                goal_progress=content.goal_progress,
                goal_status=content.goal_status or "not_started",
                metrics=dict(content.metrics),
                sequence=content.sequence,
                iteration=content.iteration,
                streak=content.streak,
            ),
        )
        return ProcessedContent(content_id=content_id, raw_content=text, metadata=metadata)

    def validate(self, content: ProcessedContent) -> ValidationResult:
        errors: list[str] = []
        if not content.raw_content:
            errors.append("Activity description is empty")
        elif len(content.raw_content) > MAX_DESCRIPTION_CHARS:
            errors.append(
                f"Activity description exceeds maximum length of {MAX_DESCRIPTION_CHARS:,} characters"
            )
        return ValidationResult(is_valid=not errors, errors=errors)

    def chunk(self, content: ProcessedContent) -> list[ContentChunk]:
        if not content.raw_content:
            return []
        return [ContentChunk(text=content.raw_content, metadata=content.metadata.for_chunk(0, 1))]

    def extract_keywords(self, chunk: ContentChunk) -> list[str]:
        activity = chunk.metadata.activity
        extra = [activity.activity_type, activity.location or "", activity.goal_status] if activity else []
        return unique(super().extract_keywords(chunk) + extra)

    def salient_fields(self, chunk: ContentChunk) -> list[str]:
        activity = chunk.metadata.activity
        if activity is None:
            return []
        return [p for p in (activity.activity_type, activity.location) if p]

    def process_references(self, content: ProcessedContent) -> list[ContentReference]:
        references = super().process_references(content)
        activity = content.metadata.activity
        if activity is not None and activity.goal_id:
            references.append(ContentReference(id=activity.goal_id, type="goal", context="associated_goal"))
        return references
