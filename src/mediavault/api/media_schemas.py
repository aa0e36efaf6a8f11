"""Pydantic schemas for media API responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..media.media_models import MediaRecord, ProcessingStatus


class MediaRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    path: str
    mime: str
    size_bytes: int
    tags: str
    thumb: str | None = None
    width: int | None = None
    height: int | None = None
    ocr_text: str | None = None
    processing_status: ProcessingStatus
    created_at: datetime

    @classmethod
    def from_record(cls, record: MediaRecord) -> "MediaRecordResponse":
        return cls.model_validate(record)

