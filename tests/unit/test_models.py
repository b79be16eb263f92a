"""Unit tests for the content models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from content_rag.errors import ContentRAGError, DimensionMismatchError, ValidationError
from content_rag.models import ActivityInput, ContentInput, ContentMetadata, ContentType, NoteInput

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _metadata(**overrides) -> ContentMetadata:
    fields = {
        "content_type": ContentType.NOTE,
        "content_id": "note-1",
        "user_id": "u1",
        "categories": ["work", "planning", "q3"],
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return ContentMetadata(**fields)


class TestContentMetadata:
    def test_derived_category_fields(self) -> None:
        metadata = _metadata()
        assert metadata.primary_category == "work"
        assert metadata.secondary_categories == ["planning", "q3"]
        assert metadata.is_first_chunk is True

    def test_categories_required(self) -> None:
        with pytest.raises(PydanticValidationError):
            _metadata(categories=[])

    def test_updated_before_created_rejected(self) -> None:
        with pytest.raises(PydanticValidationError, match="updatedAt"):
            _metadata(updated_at=NOW - timedelta(seconds=1))

    def test_chunk_index_must_be_in_range(self) -> None:
        with pytest.raises(PydanticValidationError, match="chunkIndex"):
            _metadata(chunk_index=2, total_chunks=2)

    def test_for_chunk(self) -> None:
        chunk = _metadata().for_chunk(2, 4, text="third")
        assert (chunk.chunk_index, chunk.total_chunks, chunk.is_first_chunk, chunk.text) == (2, 4, False, "third")

    def test_camel_case_aliases(self) -> None:
        dumped = _metadata().model_dump(by_alias=True)
        assert dumped["contentId"] == "note-1"
        assert dumped["primaryCategory"] == "work"


def test_content_input_discriminated_by_type() -> None:
    adapter = TypeAdapter(ContentInput)
    parsed = adapter.validate_python({"type": "note", "userId": "u1", "content": "x"})
    assert isinstance(parsed, NoteInput)


def test_activity_scores_bounded() -> None:
    with pytest.raises(PydanticValidationError):
        ActivityInput(activity_type="work", duration="1h", description="x", energy=11)


class TestErrors:
    def test_stage_prefix(self) -> None:
        assert str(ContentRAGError("boom", stage="store")) == "[store] boom"
        assert str(ContentRAGError("boom")) == "boom"

    def test_validation_error_lists_errors(self) -> None:
        exc = ValidationError(errors=["a", "b"])
        assert exc.errors == ["a", "b"]
        assert str(exc) == "Content validation failed: a, b"

    def test_dimension_mismatch(self) -> None:
        exc = DimensionMismatchError(384, 768)
        assert (exc.expected, exc.actual) == (384, 768)
        assert isinstance(exc, ContentRAGError)
