"""Route jobs to the image or video path by declared MIME type."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from ..media.media_models import ProcessingJob
from .image_processor import ImageProcessor
from .keyed_lock import KeyedLock
from .video_frames import VideoFrameExtractor

logger = logging.getLogger(__name__)


class MediaRoute(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"


def route(mime_type: str | None) -> MediaRoute:
    normalized = (mime_type or "").split(";", 1)[0].strip().lower()
    if normalized == "image/gif" or normalized.startswith("video/"):
        return MediaRoute.VIDEO
    if normalized.startswith("image/"):
        return MediaRoute.IMAGE
    return MediaRoute.UNSUPPORTED


@dataclass(slots=True)
class MediaDispatcher:
    """Invoke the processor for a job; jobs sharing an id never overlap."""

    image_processor: ImageProcessor
    video_extractor: VideoFrameExtractor
    locks: KeyedLock = field(default_factory=KeyedLock)

    def __call__(self, job: ProcessingJob) -> MediaRoute:
        return self.dispatch(job)

    def dispatch(self, job: ProcessingJob) -> MediaRoute:
        target = route(job.mime_type)
        if target is MediaRoute.UNSUPPORTED:
            # the record stays in ``processing``
            logger.warning(
                "pipeline.dispatch.unsupported",
                extra={"media_id": job.id, "mime_type": job.mime_type},
            )
            return target

        with self.locks.hold(job.id):
            if target is MediaRoute.IMAGE:
                self.image_processor.process(job.id, job.path)
            else:
                self.video_extractor.process(job.id, job.path)
        return target
