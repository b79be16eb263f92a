"""
Ingestion — per-kind pipelines that turn raw content into stored chunks.

Each content kind (document, note, activity) has a strategy subclassing
:class:`content_rag.ingestion.base.ContentIngestion` that runs
preprocess → validate → chunk → embed → store → link references.
"""
