"""Checks applied to incoming media before a record or job exists."""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from hashlib import sha256

from fastapi import UploadFile

from ..config import IngestLimits
from ..exceptions import PayloadTooLargeError, UnsupportedMediaError, UploadReadError
from .ingest_models import UploadValidationResult

logger = logging.getLogger(__name__)

FALLBACK_MIME_TYPE = "application/octet-stream"


def resolve_mime_type(filename: str | None, declared: str | None = None) -> str:
    """MIME type guessed from the file extension, else the declared one."""
    guessed, _ = mimetypes.guess_type(filename or "")
    if guessed:
        return guessed
    if declared and declared != FALLBACK_MIME_TYPE:
        return declared.split(";", 1)[0].strip().lower()
    return FALLBACK_MIME_TYPE


@dataclass(slots=True)
class UploadValidator:
    """Enforce the accepted MIME prefixes and the per-file size cap."""

    limits: IngestLimits

    def check(self, content_type: str, size_bytes: int) -> None:
        if not content_type.startswith(tuple(self.limits.allowed_mime_prefixes)):
            logger.warning("ingest.upload.unsupported_media", extra={"content_type": content_type})
            raise UnsupportedMediaError(content_type)
        if size_bytes > self.limits.max_upload_bytes:
            logger.warning(
                "ingest.upload.payload_too_large",
                extra={"size_bytes": size_bytes, "limit_bytes": self.limits.max_upload_bytes},
            )
            raise PayloadTooLargeError(size_bytes)

    async def validate(self, upload: UploadFile) -> UploadValidationResult:
        """Resolve the type, then stream the body once to measure and hash it.

        The upload is rewound afterwards so it can be persisted.
        """
        content_type = resolve_mime_type(upload.filename, upload.content_type)
        self.check(content_type, 0)
        try:
            size, digest = await self._measure(upload, content_type)
        finally:
            await upload.seek(0)

        result = UploadValidationResult(
            content_type=content_type,
            size_bytes=size,
            sha256=digest,
            filename=upload.filename or "upload",
        )
        logger.info(
            "ingest.upload.validated",
            extra={
                "upload_name": result.filename,
                "size_bytes": size,
                "content_type": content_type,
            },
        )
        return result

    async def _measure(self, upload: UploadFile, content_type: str) -> tuple[int, str]:
        hasher = sha256()
        size = 0
        while True:
            try:
                chunk = await upload.read(self.limits.chunk_size_bytes)
            except OSError as exc:
                logger.error("ingest.upload.read_failed", exc_info=exc)
                raise UploadReadError(str(exc)) from exc
            if not chunk:
                return size, hasher.hexdigest()
            size += len(chunk)
            # stop reading as soon as the cap is crossed
            self.check(content_type, size)
            hasher.update(chunk)
