"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM (content analysis)
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud."
        ),
    )
    analyzer_enabled: bool = Field(
        default=True,
        description="Disable to skip language/topic detection and use defaults.",
    )

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_dim: int = Field(
        default=0,
        description="Expected vector dimension; 0 learns it from the first vector.",
    )
    embed_max_retries: int = 3
    embed_backoff_seconds: float = 0.5

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "content_index"

    # Chunking
    document_chunk_size: int = 1000
    document_chunk_overlap: int = 200
    note_chunk_size: int = 1000
    note_chunk_overlap: int = 100

    # Storage batching
    document_batch_size: int = 100
    note_batch_size: int = 5
    activity_batch_size: int = 5
    store_batch_delay_seconds: float = 1.0

    # Retrieval
    context_max_tokens: int = 4000
    context_candidate_k: int = 20
    category_weight_threshold: float = 0.1

    # Runtime
    ingest_workers: int = 4
    max_tracked_jobs: int = Field(
        default=1000,
        description="Background runs kept for status polling; oldest finished runs are dropped first.",
    )
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Module-level instance; import `settings` wherever needed.
settings = Settings()
