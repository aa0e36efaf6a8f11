"""Application configuration builder."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db
from .settings import PipelineSettings

SQLITE_BUSY_TIMEOUT_SECONDS = 5


@dataclass(slots=True)
class IngestLimits:
    allowed_mime_prefixes: Sequence[str]
    max_upload_bytes: int
    chunk_size_bytes: int


@dataclass(slots=True)
class MediaPaths:
    storage: Path
    static: Path
    thumbs: Path
    frames: Path


@dataclass(slots=True)
class PipelineLimits:
    queue_capacity: int
    worker_count: int
    enqueue_timeout_seconds: float | None
    thumb_width: int
    ocr_language: str
    ocr_timeout_seconds: float
    frame_timeout_seconds: float
    frame_quality: int
    tesseract_binary: str
    ffmpeg_binary: str
    frame_ttl_hours: int


@dataclass(slots=True)
class AppConfig:
    media_paths: MediaPaths
    ingest_limits: IngestLimits
    pipeline: PipelineLimits
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    log_level: str = "INFO"


def build_media_paths(storage: Path, static: Path) -> MediaPaths:
    return MediaPaths(
        storage=storage,
        static=static,
        thumbs=static / "thumbs",
        frames=static / "frames",
    )


def ensure_media_paths(paths: MediaPaths) -> None:
    paths.storage.mkdir(parents=True, exist_ok=True)
    paths.thumbs.mkdir(parents=True, exist_ok=True)
    paths.frames.mkdir(parents=True, exist_ok=True)


def build_engine(database_url: str) -> Engine:
    """Create an engine shared by request and worker threads."""
    url = make_url(database_url)
    connect_args: dict[str, object] = {}
    if url.get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
    return create_engine(database_url, future=True, connect_args=connect_args)


def load_config(settings: PipelineSettings | None = None) -> AppConfig:
    """Load configuration from environment and bootstrap the store.

    Raises :class:`~mediavault.exceptions.StoreUnavailableError` when the store
    cannot be reached; callers treat that as fatal.
    """
    cfg = settings or PipelineSettings()
    media_paths = build_media_paths(cfg.storage_root, cfg.static_root)
    ensure_media_paths(media_paths)

    ingest_limits = IngestLimits(
        allowed_mime_prefixes=cfg.allowed_mime_prefixes,
        max_upload_bytes=cfg.max_upload_bytes,
        chunk_size_bytes=cfg.upload_chunk_bytes,
    )
    pipeline = PipelineLimits(
        queue_capacity=cfg.queue_capacity,
        worker_count=cfg.worker_count,
        enqueue_timeout_seconds=cfg.enqueue_timeout_seconds,
        thumb_width=cfg.thumb_width,
        ocr_language=cfg.ocr_language,
        ocr_timeout_seconds=cfg.ocr_timeout_seconds,
        frame_timeout_seconds=cfg.frame_timeout_seconds,
        frame_quality=cfg.frame_quality,
        tesseract_binary=cfg.tesseract_binary,
        ffmpeg_binary=cfg.ffmpeg_binary,
        frame_ttl_hours=cfg.frame_ttl_hours,
    )

    engine = build_engine(cfg.database_url)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)

    init_db(engine)

    return AppConfig(
        media_paths=media_paths,
        ingest_limits=ingest_limits,
        pipeline=pipeline,
        database_url=cfg.database_url,
        engine=engine,
        session_factory=session_factory,
        log_level=cfg.log_level,
    )
