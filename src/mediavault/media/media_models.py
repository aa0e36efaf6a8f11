"""Media data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class ProcessingStatus(StrEnum):
    """Lifecycle of a media record; there is no failure state."""

    PROCESSING = "processing"
    COMPLETED = "completed"


@dataclass(slots=True)
class MediaRecord:
    id: str
    path: str
    mime: str
    size_bytes: int
    tags: str
    processing_status: ProcessingStatus
    created_at: datetime
    thumb: str | None = None
    width: int | None = None
    height: int | None = None
    ocr_text: str | None = None
    sha256: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.processing_status is ProcessingStatus.COMPLETED


@dataclass(slots=True, frozen=True)
class ProcessingJob:
    """Ephemeral unit of work handed from ingestion to the worker pool."""

    id: str
    path: str
    mime_type: str
