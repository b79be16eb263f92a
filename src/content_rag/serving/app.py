"""FastAPI application exposing ingestion and context retrieval as a REST API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import Field

from content_rag.config import settings
from content_rag.errors import ContentRAGError, UnsupportedContentTypeError, ValidationError
from content_rag.models import CamelModel, ContentMetadata
from content_rag.orchestrator import ProcessingStatus
from content_rag.retrieval.models import ContextRequest
from content_rag.services import Services, build_services

logger = logging.getLogger(__name__)


# ── Request / Response schemas ────────────────────────────────────────
class IngestResponse(CamelModel):
    content_id: str
    chunk_count: int


class IngestAccepted(CamelModel):
    processing_id: str
    status: ProcessingStatus = ProcessingStatus.PENDING


class StatusResponse(CamelModel):
    processing_id: str
    status: ProcessingStatus
    content_id: str | None = None
    chunk_count: int | None = None
    error: str | None = None


class ContextQuery(CamelModel):
    """Context request from the answering layer, scoped to one user."""

    user_id: str = Field(min_length=1)
    query: str = Field(min_length=1)
    max_chunks: int = Field(default=5, ge=1)
    min_relevance: float = 0.0
    max_tokens: int | None = Field(default=None, ge=1)
    categories: list[str] = Field(default_factory=list)
    include_related_categories: bool = False


class ContextItem(CamelModel):
    id: str | None = None
    content: str
    relevance_score: float | None = None
    metadata: ContentMetadata | None = None


class ContextResponse(CamelModel):
    chunks: list[ContextItem]
    estimated_tokens: int


def create_app(services: Services | None = None) -> FastAPI:
    """Build the API; *services* defaults to :func:`build_services` at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ANN202
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        owned = services is None
        if owned:
            app.state.services = build_services(settings)
        yield
        if owned:
            app.state.services.close()

    app = FastAPI(
        title="Content RAG API",
        version="0.1.0",
        description="Ingest documents, notes and activities; retrieve bounded context.",
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    def get_services(request: Request) -> Services:
        return request.app.state.services

    @app.exception_handler(ContentRAGError)
    async def pipeline_error(request: Request, exc: ContentRAGError) -> JSONResponse:
        if isinstance(exc, ValidationError):
            code = status.HTTP_422_UNPROCESSABLE_ENTITY
        elif isinstance(exc, UnsupportedContentTypeError):
            code = status.HTTP_400_BAD_REQUEST
        else:
            code = status.HTTP_502_BAD_GATEWAY
        body: dict[str, Any] = {"detail": str(exc), "stage": exc.stage}
        if isinstance(exc, ValidationError):
            body["errors"] = exc.errors
        return JSONResponse(status_code=code, content=body)

    # ── Routes ────────────────────────────────────────────────────────────
    @app.get("/health")
    def health(request: Request) -> dict[str, Any]:
        """Liveness probe, with the vector store's reachability."""
        store_ok = get_services(request).adapter.health_check()
        return {"status": "ok" if store_ok else "degraded", "vectorStore": store_ok}

    @app.post("/ingest", response_model=IngestResponse)
    def ingest(request: Request, content: dict[str, Any] = Body(...)) -> IngestResponse:
        """Run the whole pipeline synchronously.

        The body is a document, note or activity selected by its ``type`` field.
        """
        result = get_services(request).orchestrator.process(content)
        return IngestResponse(content_id=result.content_id, chunk_count=result.chunk_count)

    @app.post("/ingest/async", response_model=IngestAccepted, status_code=status.HTTP_202_ACCEPTED)
    def ingest_async(request: Request, content: dict[str, Any] = Body(...)) -> IngestAccepted:
        """Queue the pipeline on a background worker."""
        processing_id = get_services(request).orchestrator.start_async(content)
        return IngestAccepted(processing_id=processing_id)

    @app.get("/ingest/{processing_id}", response_model=StatusResponse)
    def ingest_status(processing_id: str, request: Request) -> StatusResponse:
        record = get_services(request).orchestrator.get_status(processing_id)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Unknown processing id: {processing_id}")
        return StatusResponse(
            processing_id=record.processing_id,
            status=record.status,
            content_id=record.result.content_id if record.result else None,
            chunk_count=record.result.chunk_count if record.result else None,
            error=record.error,
        )

    @app.post("/context", response_model=ContextResponse)
    def context(query: ContextQuery, request: Request) -> ContextResponse:
        """Return the best chunks for *query* within the token budget."""
        context_request = ContextRequest(
            query=query.query,
            max_chunks=query.max_chunks,
            min_relevance=query.min_relevance,
            max_tokens=query.max_tokens,
            categories=query.categories,
            include_related_categories=query.include_related_categories,
        )
        chunks = get_services(request).retriever.retrieve(context_request, user_id=query.user_id)
        return ContextResponse(
            chunks=[
                ContextItem(
                    id=c.id, content=c.content, relevance_score=c.relevance_score, metadata=c.metadata
                )
                for c in chunks
            ],
            estimated_tokens=round(sum(c.estimated_tokens for c in chunks)),
        )

    return app


app = create_app()
