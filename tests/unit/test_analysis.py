"""Unit tests for the LLM-backed content analyzer."""

from __future__ import annotations

import logging

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from content_rag.ingestion.analysis import ContentAnalyzer


def test_analyze_uses_model_answers() -> None:
    llm = FakeListChatModel(responses=["de", "meetings, planning, budget, meetings"])
    analysis = ContentAnalyzer(llm).analyze("Wir planen das Budget.")
    assert analysis.language == "de"
    assert analysis.topics == ["meetings", "planning", "budget"]


def test_topics_capped() -> None:
    llm = FakeListChatModel(responses=["a, b, c, d, e, f, g"])
    assert ContentAnalyzer(llm).extract_topics("text") == ["a", "b", "c", "d", "e"]


def test_invalid_language_code_falls_back() -> None:
    llm = FakeListChatModel(responses=["English language"])
    assert ContentAnalyzer(llm).detect_language("hello") == "en"


@pytest.mark.parametrize(("answer", "expected"), [("Advanced.", "advanced"), ("very hard", "intermediate")])
def test_assess_complexity(answer: str, expected: str) -> None:
    llm = FakeListChatModel(responses=[answer])
    assert ContentAnalyzer(llm).assess_complexity("text") == expected


def test_model_failure_uses_defaults(failing_llm, caplog: pytest.LogCaptureFixture) -> None:
    analyzer = ContentAnalyzer(failing_llm)
    with caplog.at_level(logging.WARNING, logger="content_rag.ingestion.analysis"):
        analysis = analyzer.analyze("anything")
        complexity = analyzer.assess_complexity("anything")
    assert analysis.language == "en"
    assert analysis.topics == []
    assert complexity == "intermediate"
    assert "Content analysis failed" in caplog.text


def test_disabled_analyzer_returns_defaults() -> None:
    analysis = ContentAnalyzer(None).analyze("anything")
    assert analysis.language == "en"
    assert analysis.topics == []
