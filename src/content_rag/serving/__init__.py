"""
Serving — FastAPI application exposing ingestion and context retrieval.

Run with ``uvicorn content_rag.serving.app:app``.
"""
