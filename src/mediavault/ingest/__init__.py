"""Ingestion gateway: validate uploads, store bytes, create records, enqueue jobs."""

from .ingest_service import IngestService
from .validation import UploadValidator, resolve_mime_type

__all__ = ["IngestService", "UploadValidator", "resolve_mime_type"]
