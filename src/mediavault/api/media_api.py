"""HTTP routes for upload, search and tag edits."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status

from ..exceptions import (
    IntegrityConstraintViolation,
    NotFoundError,
    PayloadTooLargeError,
    PersistenceError,
    QueueError,
    SearchQueryError,
    UnsupportedMediaError,
    UploadReadError,
)
from ..ingest.ingest_service import IngestService
from .media_schemas import MediaRecordResponse

router = APIRouter(prefix="/api/media", tags=["media"])
logger = logging.getLogger(__name__)


def get_ingest_service(request: Request) -> IngestService:
    """Fetch ingest service from application state."""
    try:
        return request.app.state.ingest_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("IngestService is not configured") from exc


def _error(status_code: int, reason: str, details: str | None = None) -> HTTPException:
    detail: dict[str, str] = {"status": "error", "failure_reason": reason}
    if details:
        detail["details"] = details
    return HTTPException(status_code=status_code, detail=detail)


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_media(
    files: list[UploadFile] = File(...),
    tags: str = Form(""),
    service: IngestService = Depends(get_ingest_service),
) -> list[MediaRecordResponse]:
    """Store each uploaded file and schedule its processing."""
    created: list[MediaRecordResponse] = []
    for upload in files:
        try:
            record = await service.ingest_upload(upload, tags=tags)
        except UnsupportedMediaError as exc:
            raise _error(
                status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, "unsupported_media_type", str(exc)
            ) from exc
        except PayloadTooLargeError as exc:
            raise _error(
                status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "payload_too_large", str(exc)
            ) from exc
        except UploadReadError as exc:
            raise _error(status.HTTP_400_BAD_REQUEST, "invalid_request", str(exc)) from exc
        except IntegrityConstraintViolation as exc:
            raise _error(status.HTTP_409_CONFLICT, "duplicate_media", str(exc)) from exc
        except QueueError as exc:
            logger.warning("media.upload.queue_unavailable", extra={"error": str(exc)})
            raise _error(status.HTTP_503_SERVICE_UNAVAILABLE, "queue_unavailable", str(exc)) from exc
        except PersistenceError as exc:
            logger.error("media.upload.persist_failed", exc_info=exc)
            raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error") from exc
        created.append(MediaRecordResponse.from_record(record))
    return created


@router.get("")
def search_media(
    q: str = "",
    service: IngestService = Depends(get_ingest_service),
) -> list[MediaRecordResponse]:
    """List records newest first, filtered by a full-text query when given."""
    try:
        records = service.search(q)
    except SearchQueryError as exc:
        raise _error(status.HTTP_400_BAD_REQUEST, "invalid_query", str(exc)) from exc
    except PersistenceError as exc:
        logger.error("media.search.failed", extra={"query": q}, exc_info=exc)
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error") from exc
    return [MediaRecordResponse.from_record(record) for record in records]


@router.get("/{media_id}")
def get_media(
    media_id: str,
    service: IngestService = Depends(get_ingest_service),
) -> MediaRecordResponse:
    try:
        record = service.get_record(media_id)
    except NotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, "not_found") from exc
    return MediaRecordResponse.from_record(record)


@router.put("/{media_id}/tags")
def update_tags(
    media_id: str,
    tags: str = Form(""),
    service: IngestService = Depends(get_ingest_service),
) -> MediaRecordResponse:
    try:
        record = service.update_tags(media_id, tags)
    except NotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, "not_found") from exc
    except PersistenceError as exc:
        logger.error("media.tags.persist_failed", extra={"media_id": media_id}, exc_info=exc)
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error") from exc
    return MediaRecordResponse.from_record(record)
