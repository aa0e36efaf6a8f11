from __future__ import annotations

import hashlib
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from mediavault.config import IngestLimits
from mediavault.exceptions import QueueFullError, UnsupportedMediaError
from mediavault.ingest.ingest_service import IngestService
from mediavault.ingest.validation import UploadValidator
from mediavault.media.media_models import ProcessingJob, ProcessingStatus
from mediavault.pipeline.job_queue import JobQueue
from mediavault.search.query_service import QueryEngine


def build_service(repository, store, session_factory, *, capacity: int = 4, enqueue_timeout=None):
    job_queue = JobQueue(capacity)
    service = IngestService(
        repository=repository,
        validator=UploadValidator(
            IngestLimits(
                allowed_mime_prefixes=("image/", "video/"),
                max_upload_bytes=1024 * 1024,
                chunk_size_bytes=1024,
            )
        ),
        store=store,
        job_queue=job_queue,
        query_engine=QueryEngine(session_factory, repository, repository.index),
        chunk_size_bytes=1024,
        enqueue_timeout=enqueue_timeout,
    )
    return service, job_queue


def test_ingest_path_registers_record_then_enqueues(repository, store, session_factory, make_image) -> None:
    service, job_queue = build_service(repository, store, session_factory)
    source = make_image()

    record = service.ingest_path(source, mime_type="image/png", size_bytes=source.stat().st_size, tags="trip")

    assert record.processing_status is ProcessingStatus.PROCESSING
    assert record.tags == "trip"
    assert repository.get(record.id) == record
    assert job_queue.dequeue(timeout=1) == ProcessingJob(id=record.id, path=str(source), mime_type="image/png")


def test_rejected_media_creates_no_record_and_no_job(repository, store, session_factory) -> None:
    service, job_queue = build_service(repository, store, session_factory)

    with pytest.raises(UnsupportedMediaError):
        service.ingest_path("storage/doc.pdf", mime_type="application/pdf", size_bytes=10)

    assert repository.list_recent() == []
    assert job_queue.qsize() == 0


def test_full_queue_with_timeout_raises(repository, store, session_factory, make_image) -> None:
    service, job_queue = build_service(repository, store, session_factory, capacity=1, enqueue_timeout=0.05)
    source = make_image()
    service.ingest_path(source, mime_type="image/png", size_bytes=1)

    with pytest.raises(QueueFullError):
        service.ingest_path(source, mime_type="image/png", size_bytes=1)

    assert job_queue.qsize() == 1


@pytest.mark.asyncio
async def test_ingest_upload_stores_file_and_enqueues(repository, store, session_factory, make_image) -> None:
    service, job_queue = build_service(repository, store, session_factory)
    payload = make_image("holiday.png").read_bytes()
    upload = UploadFile(
        file=io.BytesIO(payload),
        filename="holiday.png",
        headers=Headers({"content-type": "image/png"}),
    )

    record = await service.ingest_upload(upload, tags="beach")

    assert record.path == str(store.upload_path(record.id, "holiday.png"))
    assert store.upload_path(record.id, "holiday.png").read_bytes() == payload
    assert record.size_bytes == len(payload)
    assert record.sha256 == hashlib.sha256(payload).hexdigest()
    assert record.mime == "image/png"
    job = job_queue.dequeue(timeout=1)
    assert (job.id, job.path, job.mime_type) == (record.id, record.path, "image/png")


def test_update_tags_and_search_delegate(repository, store, session_factory) -> None:
    service, _ = build_service(repository, store, session_factory)
    record = service.ingest_path("storage/a.png", mime_type="image/png", size_bytes=1, tags="old")

    updated = service.update_tags(record.id, "sunset")

    assert updated.tags == "sunset"
    assert [found.id for found in service.search("sunset")] == [record.id]
    assert service.search("old") == []
    assert service.get_record(record.id).tags == "sunset"
