"""Environment-driven settings for MediaVault.

Every field can be overridden with a ``MEDIAVAULT_`` prefixed environment
variable, e.g. ``MEDIAVAULT_WORKER_COUNT=8``. Defaults mirror a single-node
deployment backed by a local SQLite file.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Pydantic settings container for storage, queue and external tools."""

    model_config = SettingsConfigDict(env_prefix="MEDIAVAULT_", env_file=".env", extra="ignore")

    database_url: str = Field(
        default="sqlite:///vault.db",
        description="SQLAlchemy URL of the primary record store (SQLite with FTS5).",
    )
    storage_root: Path = Field(
        default=Path("storage"),
        description="Directory holding the original uploaded bytes.",
    )
    static_root: Path = Field(
        default=Path("static"),
        description="Directory holding derived artefacts (thumbnails, frames).",
    )
    queue_capacity: int = Field(
        default=100,
        ge=1,
        description="Bounded job queue capacity; producers block once it is full.",
    )
    worker_count: int = Field(
        default=4,
        ge=1,
        description="Fixed number of worker threads consuming the job queue.",
    )
    enqueue_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Optional cap on how long ingestion waits for a free queue slot.",
    )
    thumb_width: int = Field(
        default=200,
        ge=1,
        description="Target thumbnail width in pixels; height keeps the aspect ratio.",
    )
    ocr_language: str = Field(default="eng", description="Language hint passed to tesseract.")
    ocr_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Wall-clock limit for a single OCR invocation.",
    )
    frame_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Wall-clock limit for a single frame extraction.",
    )
    frame_quality: int = Field(
        default=2,
        ge=1,
        le=31,
        description="ffmpeg -q:v value for extracted frames (lower is better).",
    )
    tesseract_binary: str = Field(default="tesseract")
    ffmpeg_binary: str = Field(default="ffmpeg")
    max_upload_bytes: int = Field(
        default=100 * 1024 * 1024,
        ge=1,
        description="Absolute cap on a single uploaded file.",
    )
    upload_chunk_bytes: int = Field(default=1024 * 1024, ge=1)
    allowed_mime_prefixes: tuple[str, ...] = Field(
        default=("image/", "video/"),
        description="MIME type prefixes accepted at ingestion.",
    )
    frame_ttl_hours: int = Field(
        default=24,
        ge=1,
        description="Age after which orphaned frame files are purged by cleanup.",
    )
    log_level: str = Field(default="INFO")


__all__ = ["PipelineSettings"]
