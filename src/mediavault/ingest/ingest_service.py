"""Domain service for ingest operations."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import UploadFile

from ..exceptions import PersistenceError
from ..media.media_models import MediaRecord, ProcessingJob
from ..media.media_storage import MediaStore
from ..pipeline.job_queue import JobQueue
from ..repositories.media_repository import MediaRepository
from ..search.query_service import QueryEngine
from .validation import UploadValidator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestService:
    """Coordinates ingestion and the synchronous record operations.

    A record (status ``processing``) and its index entry are created before the
    matching job is enqueued, so a worker never sees a job without a record.
    """

    repository: MediaRepository
    validator: UploadValidator
    store: MediaStore
    job_queue: JobQueue
    query_engine: QueryEngine
    chunk_size_bytes: int = 1024 * 1024
    enqueue_timeout: float | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    async def ingest_upload(self, upload: UploadFile, *, tags: str = "") -> MediaRecord:
        """Validate, store and register one uploaded file."""
        validation = await self.validator.validate(upload)
        media_id = uuid.uuid4().hex
        target = self.store.upload_path(media_id, upload.filename)
        size = await self.store.persist_upload(upload, target, chunk_size=self.chunk_size_bytes)
        # enqueue may block on a full queue; keep it off the event loop
        try:
            return await asyncio.to_thread(
                self.register,
                media_id=media_id,
                path=target,
                mime_type=validation.content_type,
                size_bytes=size,
                tags=tags,
                sha256=validation.sha256,
            )
        except PersistenceError:
            target.unlink(missing_ok=True)
            raise

    def ingest_path(
        self,
        path: str | Path,
        *,
        mime_type: str,
        size_bytes: int,
        tags: str = "",
    ) -> MediaRecord:
        """Register a file already stored at a stable ``path``."""
        self.validator.check(mime_type, size_bytes)
        return self.register(
            media_id=uuid.uuid4().hex,
            path=Path(path),
            mime_type=mime_type,
            size_bytes=size_bytes,
            tags=tags,
        )

    def register(
        self,
        *,
        media_id: str,
        path: Path,
        mime_type: str,
        size_bytes: int,
        tags: str = "",
        sha256: str | None = None,
    ) -> MediaRecord:
        record = self.repository.create(
            media_id=media_id,
            path=str(path),
            mime=mime_type,
            size_bytes=size_bytes,
            tags=tags,
            sha256=sha256,
        )
        self.job_queue.enqueue(
            ProcessingJob(id=record.id, path=record.path, mime_type=record.mime),
            timeout=self.enqueue_timeout,
        )
        self.log.info(
            "ingest.media.registered",
            extra={
                "media_id": record.id,
                "path": record.path,
                "mime_type": record.mime,
                "size_bytes": record.size_bytes,
            },
        )
        return record

    def update_tags(self, media_id: str, tags: str) -> MediaRecord:
        self.log.info("ingest.media.update_tags", extra={"media_id": media_id, "tags": tags})
        return self.repository.update_tags(media_id, tags)

    def get_record(self, media_id: str) -> MediaRecord:
        return self.repository.get(media_id)

    def search(self, query: str | None) -> list[MediaRecord]:
        return self.query_engine.search(query)
