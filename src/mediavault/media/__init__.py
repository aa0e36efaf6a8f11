"""Media records and on-disk artefact storage."""

from .media_models import MediaRecord, ProcessingJob, ProcessingStatus
from .media_storage import MediaStore

__all__ = ["MediaRecord", "MediaStore", "ProcessingJob", "ProcessingStatus"]
