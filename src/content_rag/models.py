"""Domain models for ingested content.

Every model serializes with camelCase aliases (``contentId``,
``chunkIndex`` …) so that the field names on the vector-store wire match
the names used by the upstream forms, while Python code keeps snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with ``utc_now()``."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    """Base model accepting both snake_case names and camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentType(str, Enum):
    DOCUMENT = "document"
    NOTE = "note"
    ACTIVITY = "activity"


class ContentStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


Access = Literal["public", "personal", "shared"]
ActivityType = Literal["physical", "work", "study", "routine"]
GoalStatus = Literal["not_started", "in_progress", "completed", "failed"]
Complexity = Literal["basic", "intermediate", "advanced"]


# ---------------------------------------------------------------------------
# Kind-specific payloads
# ---------------------------------------------------------------------------


class DocumentDetails(CamelModel):
    """File and structure information for an uploaded document."""

    file_type: str = "text/plain"
    file_name: str = "document.txt"
    file_size: int = 0
    mime_type: str = "text/plain"
    processing_status: Literal["pending", "processing", "complete", "failed"] = "complete"
    extraction_method: Literal["text", "ocr", "manual"] = "text"
    page_count: int | None = None
    current_page: int | None = None
    has_images: bool = False
    table_count: int | None = None
    reading_time: int | None = None
    complexity: Complexity | None = None
    topic_model: list[str] = Field(default_factory=list)


class NoteDetails(CamelModel):
    """Organization and structure flags for a note."""

    is_pinned: bool = False
    is_starred: bool = False
    color: str | None = None
    format: Literal["text", "markdown", "rich-text"] = "text"
    has_checkboxes: bool = False
    checklist_progress: int = 0
    contains_code: bool = False
    context: str | None = None
    associated_date: str | None = None
    collaborators: list[str] = Field(default_factory=list)
    last_edited_by: str | None = None
    comment_count: int = 0


class ActivityDetails(CamelModel):
    """Timing, metrics and goal tracking for a logged activity."""

    activity_type: ActivityType
    start_time: datetime
    end_time: datetime
    duration: str
    location: str | None = None

    # 1-10 scale, 0 when not reported
    energy: int = Field(default=0, ge=0, le=10)
    productivity: int = Field(default=0, ge=0, le=10)
    satisfaction: int = Field(default=0, ge=0, le=10)

    goal_id: str | None = None
    goal_progress: float | None = None
    goal_status: GoalStatus = "not_started"

    metrics: dict[str, int | float | str] = Field(default_factory=dict)

    sequence: int | None = None
    iteration: int | None = None
    streak: int | None = None


# ---------------------------------------------------------------------------
# Metadata envelope
# ---------------------------------------------------------------------------


class ContentMetadata(CamelModel):
    """Metadata envelope shared by every content kind and every chunk.

    ``primary_category``, ``secondary_categories`` and ``is_first_chunk``
    are derived from ``categories`` and ``chunk_index`` on validation.
    """

    content_type: ContentType
    content_id: str
    user_id: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: int = Field(default=1, ge=1)
    status: ContentStatus = ContentStatus.ACTIVE

    chunk_index: int = Field(default=0, ge=0)
    total_chunks: int = Field(default=1, ge=0)
    is_first_chunk: bool = True

    access: Access = "personal"
    shared_with: list[str] = Field(default_factory=list)

    categories: list[str] = Field(min_length=1)
    primary_category: str = ""
    secondary_categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    title: str = ""
    text: str = ""
    summary: str = ""
    searchable_text: str = ""
    keywords: list[str] = Field(default_factory=list)
    language: str = "en"
    source: str = ""

    related_ids: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)

    document: DocumentDetails | None = None
    note: NoteDetails | None = None
    activity: ActivityDetails | None = None

    @model_validator(mode="after")
    def check_envelope(self) -> ContentMetadata:
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not precede createdAt")
        if self.total_chunks and self.chunk_index >= self.total_chunks:
            raise ValueError(
                f"chunkIndex {self.chunk_index} out of range for totalChunks {self.total_chunks}"
            )
        self.primary_category = self.categories[0]
        self.secondary_categories = self.categories[1:]
        self.is_first_chunk = self.chunk_index == 0
        return self

    @property
    def payload(self) -> DocumentDetails | NoteDetails | ActivityDetails | None:
        """The kind-specific payload matching ``content_type``."""
        return getattr(self, self.content_type.value)

    def for_chunk(self, index: int, total: int, **extra: Any) -> ContentMetadata:
        """Return a copy carrying chunk-specific indices."""
        return self.model_copy(
            update={
                "chunk_index": index,
                "total_chunks": total,
                "is_first_chunk": index == 0,
                **extra,
            },
            deep=True,
        )


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class _InputBase(CamelModel):
    id: str | None = None
    user_id: str = ""
    access: Access = "personal"
    shared_with: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class DocumentInput(_InputBase):
    """An uploaded document whose text has already been extracted."""

    type: Literal["document"] = "document"
    content: str
    title: str = ""
    source: str = "user-input"
    references: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    file_name: str = "document.txt"
    file_type: str = "text/plain"
    file_size: int | None = None
    page_count: int | None = None

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class NoteInput(_InputBase):
    type: Literal["note"] = "note"
    content: str
    title: str | None = None
    format: Literal["text", "markdown", "rich-text"] = "text"
    is_pinned: bool = False
    is_starred: bool = False
    color: str | None = None
    context: str | None = None
    associated_date: str | None = None


class ActivityInput(_InputBase):
    type: Literal["activity"] = "activity"
    activity_type: ActivityType
    category: str = ""
    subcategory: str | None = None
    description: str = ""
    duration: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    location: str | None = None
    energy: int | None = Field(default=None, ge=0, le=10)
    productivity: int | None = Field(default=None, ge=0, le=10)
    satisfaction: int | None = Field(default=None, ge=0, le=10)
    goal_id: str | None = None
    goal_progress: float | None = None
    goal_status: GoalStatus | None = None
    metrics: dict[str, int | float | str] = Field(default_factory=dict)
    sequence: int | None = None
    iteration: int | None = None
    streak: int | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


ContentInput = Annotated[
    Union[DocumentInput, NoteInput, ActivityInput],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Pipeline artefacts
# ---------------------------------------------------------------------------


class ProcessedContent(CamelModel):
    """Output of the preprocess stage."""

    content_id: str
    raw_content: str
    metadata: ContentMetadata


class ContentChunk(CamelModel):
    text: str
    metadata: ContentMetadata


class EmbeddedChunk(CamelModel):
    id: str
    values: list[float]
    metadata: ContentMetadata


class ValidationResult(CamelModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)


class StorageResult(CamelModel):
    content_id: str
    chunk_count: int
    metadata: ContentMetadata


class ContentReference(CamelModel):
    """An outbound link from one piece of content to something else."""

    id: str
    type: Literal["link", "user", "document", "goal"]
    context: str = ""
