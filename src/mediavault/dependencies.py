"""Dependency wiring helpers."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI

from .api.media_api import router as media_router
from .config import AppConfig
from .ingest.ingest_service import IngestService
from .ingest.validation import UploadValidator
from .media.media_storage import MediaStore
from .pipeline.dispatcher import MediaDispatcher
from .pipeline.external_tools import (
    FfmpegFrameExtractor,
    FrameExtractionEngine,
    OcrEngine,
    TesseractOcrEngine,
)
from .pipeline.image_processor import ImageProcessor
from .pipeline.job_queue import JobQueue
from .pipeline.video_frames import VideoFrameExtractor
from .pipeline.worker_pool import WorkerPool
from .repositories.media_repository import MediaRepository
from .search.query_service import QueryEngine
from .search.search_index import SearchIndex


@dataclass(slots=True)
class ServiceContainer:
    repository: MediaRepository
    store: MediaStore
    query_engine: QueryEngine
    job_queue: JobQueue
    dispatcher: MediaDispatcher
    worker_pool: WorkerPool
    ingest_service: IngestService


def build_container(
    config: AppConfig,
    *,
    ocr_engine: OcrEngine | None = None,
    frame_engine: FrameExtractionEngine | None = None,
) -> ServiceContainer:
    """Build the pipeline and services; workers are created but not started."""
    limits = config.pipeline
    index = SearchIndex()
    repository = MediaRepository(config.session_factory, index)
    store = MediaStore(config.media_paths)
    store.ensure_structure()

    ocr = ocr_engine or TesseractOcrEngine(
        binary=limits.tesseract_binary,
        language=limits.ocr_language,
        timeout_seconds=limits.ocr_timeout_seconds,
    )
    frames = frame_engine or FfmpegFrameExtractor(
        binary=limits.ffmpeg_binary,
        quality=limits.frame_quality,
        timeout_seconds=limits.frame_timeout_seconds,
    )
    image_processor = ImageProcessor(
        repository=repository,
        store=store,
        ocr_engine=ocr,
        thumb_width=limits.thumb_width,
    )
    dispatcher = MediaDispatcher(
        image_processor=image_processor,
        video_extractor=VideoFrameExtractor(
            image_processor=image_processor,
            frame_engine=frames,
            store=store,
        ),
    )
    job_queue = JobQueue(limits.queue_capacity)
    worker_pool = WorkerPool(job_queue, dispatcher.dispatch, size=limits.worker_count)
    query_engine = QueryEngine(config.session_factory, repository, index)

    ingest_service = IngestService(
        repository=repository,
        validator=UploadValidator(config.ingest_limits),
        store=store,
        job_queue=job_queue,
        query_engine=query_engine,
        chunk_size_bytes=config.ingest_limits.chunk_size_bytes,
        enqueue_timeout=limits.enqueue_timeout_seconds,
    )
    return ServiceContainer(
        repository=repository,
        store=store,
        query_engine=query_engine,
        job_queue=job_queue,
        dispatcher=dispatcher,
        worker_pool=worker_pool,
        ingest_service=ingest_service,
    )


def include_routers(app: FastAPI, container: ServiceContainer) -> None:
    """Mount module routers and attach services."""
    app.state.container = container
    app.state.ingest_service = container.ingest_service
    app.include_router(media_router)
