"""Unit tests for file loading into document inputs."""

from pathlib import Path

import pytest

from content_rag.ingestion.loader import load_document


def test_load_markdown_file(tmp_path: Path) -> None:
    path = tmp_path / "design-notes.md"
    path.write_text("# Design\n\nThe indexer writes in batches.", encoding="utf-8")

    document = load_document(path, "u1", categories=["engineering"])

    assert document.user_id == "u1"
    assert document.title == "design-notes"
    assert document.file_name == "design-notes.md"
    assert document.file_size == path.stat().st_size
    assert document.page_count is None
    assert document.categories == ["engineering"]
    assert "writes in batches" in document.content


def test_explicit_title_wins(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_text("plain text", encoding="utf-8")
    assert load_document(path, "u1", title="Custom").title == "Custom"


def test_unsupported_extension(tmp_path: Path) -> None:
    path = tmp_path / "image.png"
    path.write_bytes(b"\x89PNG")
    with pytest.raises(ValueError, match="Unsupported document type"):
        load_document(path, "u1")
