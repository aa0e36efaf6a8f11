"""Domain level exceptions and helpers for repository layers."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, TypeVar

from sqlalchemy import exc as sa_exc

__all__ = [
    "AppError",
    "ValidationError",
    "UnsupportedMediaError",
    "PayloadTooLargeError",
    "UploadReadError",
    "PersistenceError",
    "NotFoundError",
    "IntegrityConstraintViolation",
    "DuplicateMediaError",
    "DatabaseOperationError",
    "StoreUnavailableError",
    "ProcessingError",
    "DecodeError",
    "ThumbnailError",
    "FrameExtractionError",
    "IndexSyncError",
    "SearchQueryError",
    "QueueError",
    "QueueFullError",
    "QueueClosedError",
    "ensure_found",
    "handle_sqlalchemy_errors",
]


class AppError(Exception):
    """Base class for application specific errors."""


class ValidationError(AppError):
    """Raised synchronously when an upload is rejected before any job exists."""


class UnsupportedMediaError(ValidationError):
    """Raised when the media type is not accepted."""


class PayloadTooLargeError(ValidationError):
    """Raised when an upload exceeds the configured size cap."""


class UploadReadError(ValidationError):
    """Raised when streaming the upload fails."""


class PersistenceError(AppError):
    """Base class for persistence layer failures."""


class NotFoundError(PersistenceError):
    """Raised when a record could not be located."""


class IntegrityConstraintViolation(PersistenceError):
    """Raised when a database constraint is violated."""


class DuplicateMediaError(IntegrityConstraintViolation):
    """Raised when content with the same sha256 digest is already stored."""


class DatabaseOperationError(PersistenceError):
    """Raised for unexpected database errors."""


class StoreUnavailableError(PersistenceError):
    """Raised when the store cannot be reached or bootstrapped at startup."""


class ProcessingError(AppError):
    """Base class for asynchronous processing failures (logged, never surfaced)."""


class DecodeError(ProcessingError):
    """Raised when an image cannot be decoded."""


class ThumbnailError(ProcessingError):
    """Raised when a thumbnail cannot be produced or saved."""


class FrameExtractionError(ProcessingError):
    """Raised when a still frame cannot be extracted from a video."""


class IndexSyncError(AppError):
    """Raised when the search index projection could not be written."""


class SearchQueryError(AppError):
    """Raised when the index rejects a query expression."""


class QueueError(AppError):
    """Base class for job queue failures."""


class QueueFullError(QueueError):
    """Raised when a bounded enqueue timed out on a saturated queue."""


class QueueClosedError(QueueError):
    """Raised when enqueueing after the queue has been closed."""


@dataclass(slots=True)
class _EntityContext:
    """Internal helper describing the entity for error messages."""

    entity: str | None = None

    def format(self, message: str) -> str:
        if self.entity:
            return f"{self.entity}: {message}"
        return message


_T = TypeVar("_T")


def ensure_found(record: _T | None, *, entity: str, identifier: str) -> _T:
    """Ensure a record exists, otherwise raise :class:`NotFoundError`."""

    if record is None:
        raise NotFoundError(f"{entity} '{identifier}' not found")
    return record


def _translate_sqlalchemy_error(exc: Exception, *, context: _EntityContext) -> PersistenceError:
    if isinstance(exc, sa_exc.IntegrityError):
        return IntegrityConstraintViolation(context.format("integrity constraint violated"))
    if isinstance(exc, sa_exc.DBAPIError):
        return DatabaseOperationError(context.format(f"database operation failed: {exc.orig}"))
    return PersistenceError(context.format(str(exc)))


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into domain specific ones."""

    context = _EntityContext(entity)
    try:
        yield
    except (sa_exc.IntegrityError, sa_exc.DBAPIError) as exc:
        raise _translate_sqlalchemy_error(exc, context=context) from exc
