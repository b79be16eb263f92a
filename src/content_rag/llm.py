"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` to a self-hosted
   server (vLLM, Ollama, LiteLLM …) exposing ``/v1/chat/completions``.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from content_rag.config import Settings, settings

logger = logging.getLogger(__name__)


def get_llm(temperature: float = 0.0, config: Settings | None = None) -> ChatOpenAI:
    """Return the chat model used for content analysis.

    When ``llm_base_url`` is set the client is pointed at that endpoint
    instead of the OpenAI cloud API, with a dummy key when none is
    configured.
    """
    config = config or settings
    kwargs: dict = {
        "model": config.llm_model_name,
        "temperature": temperature,
    }

    if config.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", config.llm_base_url)
        kwargs["base_url"] = config.llm_base_url
        # Self-hosted servers ignore the key; LangChain requires a non-empty value.
        kwargs["api_key"] = config.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = config.openai_api_key

    return ChatOpenAI(**kwargs)
