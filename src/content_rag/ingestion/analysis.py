"""Best-effort language, topic and complexity detection via an LLM.

The analyzer never raises: any model failure is logged and replaced by a
safe default, because this metadata is advisory rather than structural.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
DEFAULT_COMPLEXITY = "intermediate"
_COMPLEXITY_LEVELS = ("basic", "intermediate", "advanced")

LANGUAGE_PROMPT = (
    "Analyze this text and return ONLY the ISO 639-1 language code "
    "(e.g. 'en' for English): \"{sample}...\""
)
TOPICS_PROMPT = (
    "Extract 3-5 main topics from this text. Return ONLY a comma-separated "
    "list of single words or short phrases: \"{sample}...\""
)
COMPLEXITY_PROMPT = (
    "Analyze this text and return ONLY 'basic', 'intermediate', or 'advanced' "
    "based on its complexity level: \"{sample}...\""
)


class ContentAnalysis(BaseModel):
    language: str = DEFAULT_LANGUAGE
    topics: list[str] = Field(default_factory=list)


class ContentAnalyzer:
    """Ask a chat model for language, topics and complexity of a sample.

    Parameters
    ----------
    llm:
        Any LangChain chat model. When *None* analysis is disabled and
        every call returns the defaults.
    """

    def __init__(self, llm: BaseChatModel | None = None, *, max_topics: int = 5) -> None:
        self._llm = llm
        self.max_topics = max_topics

    def analyze(self, text: str) -> ContentAnalysis:
        return ContentAnalysis(
            language=self.detect_language(text),
            topics=self.extract_topics(text),
        )

    def detect_language(self, text: str) -> str:
        answer = self._ask(LANGUAGE_PROMPT.format(sample=text[:500]), "language detection")
        if answer is None:
            return DEFAULT_LANGUAGE
        code = answer.strip().strip("'\"`.").lower()
        return code if len(code) == 2 and code.isalpha() else DEFAULT_LANGUAGE

    def extract_topics(self, text: str) -> list[str]:
        answer = self._ask(TOPICS_PROMPT.format(sample=text[:1000]), "topic extraction")
        if answer is None:
            return []
        topics = [t.strip().strip("'\"`.") for t in answer.split(",")]
        return list(dict.fromkeys(t for t in topics if t))[: self.max_topics]

    def assess_complexity(self, text: str) -> str:
        answer = self._ask(COMPLEXITY_PROMPT.format(sample=text[:500]), "complexity assessment")
        if answer is None:
            return DEFAULT_COMPLEXITY
        level = answer.strip().strip("'\"`.").lower()
        return level if level in _COMPLEXITY_LEVELS else DEFAULT_COMPLEXITY

    def _ask(self, prompt: str, purpose: str) -> str | None:
        if self._llm is None:
            return None
        try:
            response = self._llm.invoke(prompt)
        except Exception:
            logger.warning("Content analysis failed during %s; using defaults", purpose, exc_info=True)
            return None
        content = getattr(response, "content", response)
        return content if isinstance(content, str) else str(content)
