"""Asynchronous media processing pipeline."""

from .dispatcher import MediaDispatcher, MediaRoute, route
from .image_processor import ImageProcessor, ProcessingResult
from .job_queue import JobQueue
from .video_frames import VideoFrameExtractor
from .worker_pool import WorkerPool

__all__ = [
    "ImageProcessor",
    "JobQueue",
    "MediaDispatcher",
    "MediaRoute",
    "ProcessingResult",
    "VideoFrameExtractor",
    "WorkerPool",
    "route",
]
