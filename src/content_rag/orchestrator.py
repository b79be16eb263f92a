"""Content orchestrator — picks the ingestion strategy and drives the pipeline.

Synchronous runs go through :meth:`ContentOrchestrator.process`; background
runs are handed to a thread pool with :meth:`ContentOrchestrator.start_async`
and polled with :meth:`ContentOrchestrator.get_status`.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter

from content_rag.config import settings
from content_rag.errors import ContentRAGError, UnsupportedContentTypeError, ValidationError
from content_rag.ingestion.base import ContentIngestion
from content_rag.ingestion.loader import load_document
from content_rag.models import ContentInput, ContentType, StorageResult, utc_now

logger = logging.getLogger(__name__)

_INPUT_ADAPTER: TypeAdapter[Any] = TypeAdapter(ContentInput)


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class ProcessingRecord(BaseModel):
    """State of one background ingestion run."""

    processing_id: str
    content_type: ContentType
    status: ProcessingStatus = ProcessingStatus.PENDING
    error: str | None = None
    result: StorageResult | None = None
    submitted_at: datetime = Field(default_factory=utc_now)
    finished_at: datetime | None = None


class ContentOrchestrator:
    """Route inputs to their :class:`ContentIngestion` strategy.

    Parameters
    ----------
    strategies:
        One strategy per content kind. The registry is keyed by each
        strategy's ``content_type``.
    max_workers:
        Size of the background thread pool used by :meth:`start_async`.
    max_tracked:
        Number of background runs kept for :meth:`get_status`. Once
        exceeded, the oldest finished runs are forgotten; runs still
        pending or processing are always kept.
    """

    def __init__(
        self,
        strategies: Iterable[ContentIngestion],
        *,
        max_workers: int = settings.ingest_workers,
        max_tracked: int = settings.max_tracked_jobs,
    ) -> None:
        self._strategies: dict[ContentType, ContentIngestion] = {s.content_type: s for s in strategies}
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ingest")
        self._records: OrderedDict[str, ProcessingRecord] = OrderedDict()
        self.max_tracked = max_tracked
        self._lock = threading.Lock()

    @property
    def supported_types(self) -> list[ContentType]:
        return list(self._strategies)

    def strategy_for(self, content_type: ContentType | str) -> ContentIngestion:
        try:
            return self._strategies[ContentType(content_type)]
        except (ValueError, KeyError):
            raise UnsupportedContentTypeError(content_type, stage="dispatch") from None

    # -- synchronous ----------------------------------------------------------

    def process(self, content: BaseModel | Mapping[str, Any]) -> StorageResult:
        """Run every stage for *content* and return the storage result.

        Raises
        ------
        UnsupportedContentTypeError
            If no strategy is registered for the input's kind.
        ContentRAGError
            Any stage failure, re-raised unwrapped with its ``stage`` set.
        """
        content = self._coerce(content)
        strategy = self.strategy_for(content.type)

        stage = "preprocess"
        try:
            processed = strategy.preprocess(content)

            stage = "validate"
            validation = strategy.validate(processed)
            if not validation.is_valid:
                raise ValidationError(errors=validation.errors)

            stage = "chunk"
            chunks = strategy.chunk(processed)

            stage = "embed"
            embedded = strategy.embed(chunks)

            stage = "store"
            result = strategy.store(embedded)

            stage = "link"
            references = strategy.process_references(processed)
            strategy.link_related_content(processed.content_id, references)
        except ContentRAGError as exc:
            exc.stage = exc.stage or stage
            logger.error("Ingestion of %s failed: %s", content.type, exc)
            raise

        logger.info(
            "Ingested %s %s: %d chunks, %d references",
            content.type, result.content_id, result.chunk_count, len(references),
        )
        return result

    def process_file(self, path: str | Path, user_id: str, **fields: Any) -> StorageResult:
        """Load a ``.pdf`` or text/markdown file and ingest it as a document."""
        try:
            document = load_document(path, user_id, **fields)
        except (OSError, ValueError) as exc:
            raise ValidationError(f"Cannot load {path}: {exc}", stage="load") from exc
        return self.process(document)

    # -- background -----------------------------------------------------------

    def start_async(self, content: BaseModel | Mapping[str, Any]) -> str:
        """Register *content* and process it on a worker thread.

        Returns the processing id immediately; poll :meth:`get_status`.
        """
        content = self._coerce(content)
        self.strategy_for(content.type)

        processing_id = uuid.uuid4().hex
        record = ProcessingRecord(processing_id=processing_id, content_type=ContentType(content.type))
        with self._lock:
            self._records[processing_id] = record
            self._evict()

        self._executor.submit(self._run, processing_id, content)
        logger.info("Queued %s ingestion %s", content.type, processing_id)
        return processing_id

    def get_status(self, processing_id: str) -> ProcessingRecord | None:
        with self._lock:
            record = self._records.get(processing_id)
            return record.model_copy() if record is not None else None

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run(self, processing_id: str, content: BaseModel) -> None:
        self._update(processing_id, status=ProcessingStatus.PROCESSING)
        try:
            result = self.process(content)
        except Exception as exc:
            logger.exception("Background ingestion %s failed", processing_id)
            self._update(
                processing_id, status=ProcessingStatus.FAILED, error=str(exc), finished_at=utc_now()
            )
            return
        self._update(
            processing_id, status=ProcessingStatus.COMPLETE, result=result, finished_at=utc_now()
        )

    def _update(self, processing_id: str, **changes: Any) -> None:
        with self._lock:
            record = self._records[processing_id]
            self._records[processing_id] = record.model_copy(update=changes)
            self._evict()

    def _evict(self) -> None:
        # Caller holds the lock.
        excess = len(self._records) - self.max_tracked
        if excess <= 0:
            return
        finished = [
            pid
            for pid, record in self._records.items()
            if record.status in (ProcessingStatus.COMPLETE, ProcessingStatus.FAILED)
        ]
        for pid in finished[:excess]:
            del self._records[pid]

    # -- internals ------------------------------------------------------------

    def _coerce(self, content: BaseModel | Mapping[str, Any]) -> BaseModel:
        if isinstance(content, BaseModel):
            return content
        kind = content.get("type", content.get("contentType"))
        self.strategy_for(kind)
        payload = {**content, "type": kind}
        try:
            return _INPUT_ADAPTER.validate_python(payload)
        except ValueError as exc:
            raise ValidationError("Invalid content input", errors=[str(exc)], stage="parse") from exc
