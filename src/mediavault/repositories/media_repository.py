"""Persistence layer for media records and their search projection.

Each mutating operation writes the ``media`` row first and the ``media_fts``
projection second, inside one transaction. The projection write runs in a
SAVEPOINT: when it fails, only the savepoint is rolled back, the failure is
logged and the record change still commits. The index is then divergent from
the record and nothing reconciles it; :meth:`MediaRepository.index_in_sync`
exposes the divergence.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from pathlib import Path

from sqlalchemy import literal_column, select
from sqlalchemy.orm import Session

from ..db.db_models import MediaModel, utcnow
from ..exceptions import DuplicateMediaError, IndexSyncError, ensure_found, handle_sqlalchemy_errors
from ..media.media_models import MediaRecord, ProcessingStatus
from ..search.search_index import SearchIndex, SearchIndexEntry

logger = logging.getLogger(__name__)

_NEWEST_FIRST = (MediaModel.created_at.desc(), literal_column("media.rowid").desc())


class MediaRepository:
    """Store media records and keep the search index projection aligned."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        index: SearchIndex | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._index = index or SearchIndex()

    @property
    def index(self) -> SearchIndex:
        return self._index

    def create(
        self,
        *,
        path: str | Path,
        mime: str,
        size_bytes: int,
        tags: str = "",
        sha256: str | None = None,
        media_id: str | None = None,
    ) -> MediaRecord:
        """Insert a record in ``processing`` state plus its placeholder index entry.

        Raises :class:`DuplicateMediaError` when ``sha256`` is already stored.
        """
        media_id = media_id or uuid.uuid4().hex
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="media"):
            if sha256 is not None:
                existing = session.scalar(select(MediaModel.id).where(MediaModel.sha256 == sha256))
                if existing is not None:
                    raise DuplicateMediaError(f"content {sha256} already stored as media '{existing}'")
            model = MediaModel(
                id=media_id,
                path=str(path),
                mime=mime,
                size_bytes=size_bytes,
                tags=tags,
                sha256=sha256,
                processing_status=ProcessingStatus.PROCESSING.value,
                created_at=utcnow(),
            )
            session.add(model)
            session.flush()
            entry = SearchIndexEntry(id=media_id, ocr_text="", tags=tags, path=str(path))
            self._sync_index(session, "insert", media_id, lambda: self._index.insert(session, entry))
            session.commit()
            return self._to_domain(model)

    def get(self, media_id: str) -> MediaRecord:
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="media"):
            model = ensure_found(session.get(MediaModel, media_id), entity="Media", identifier=media_id)
            return self._to_domain(model)

    def list_recent(self, limit: int | None = None) -> list[MediaRecord]:
        """All records, newest first."""
        statement = select(MediaModel).order_by(*_NEWEST_FIRST)
        if limit is not None:
            statement = statement.limit(limit)
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="media"):
            return [self._to_domain(model) for model in session.scalars(statement)]

    def list_by_ids(self, media_ids: Iterable[str]) -> list[MediaRecord]:
        """Records for exactly ``media_ids``, newest first."""
        ids = list(dict.fromkeys(media_ids))
        if not ids:
            return []
        statement = select(MediaModel).where(MediaModel.id.in_(ids)).order_by(*_NEWEST_FIRST)
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="media"):
            return [self._to_domain(model) for model in session.scalars(statement)]

    def update_tags(self, media_id: str, tags: str, *, sync_index: bool = True) -> MediaRecord:
        """Replace the tags of a record; processing status is left untouched."""
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="media"):
            model = ensure_found(session.get(MediaModel, media_id), entity="Media", identifier=media_id)
            model.tags = tags
            session.flush()
            if sync_index:
                self._sync_index(
                    session,
                    "update_tags",
                    media_id,
                    lambda: self._index.update_tags(session, media_id, tags),
                )
            else:
                logger.info("search.index.sync_skipped", extra={"media_id": media_id, "operation": "update_tags"})
            session.commit()
            return self._to_domain(model)

    def complete_processing(
        self,
        media_id: str,
        *,
        thumb: str | Path,
        width: int,
        height: int,
        ocr_text: str,
    ) -> MediaRecord:
        """Store derived fields, mark the record completed and project the OCR text."""
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="media"):
            model = ensure_found(session.get(MediaModel, media_id), entity="Media", identifier=media_id)
            model.thumb = str(thumb)
            model.width = width
            model.height = height
            model.ocr_text = ocr_text
            model.processing_status = ProcessingStatus.COMPLETED.value
            session.flush()
            self._sync_index(
                session,
                "update_ocr_text",
                media_id,
                lambda: self._index.update_ocr_text(session, media_id, ocr_text),
            )
            session.commit()
            return self._to_domain(model)

    def get_index_entry(self, media_id: str) -> SearchIndexEntry | None:
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="media_fts"):
            return self._index.get_entry(session, media_id)

    def index_in_sync(self, media_id: str) -> bool:
        """Whether the index entry equals the projection of the stored record."""
        record = self.get(media_id)
        entry = self.get_index_entry(media_id)
        if entry is None:
            return False
        return (
            entry.ocr_text == (record.ocr_text or "")
            and entry.tags == (record.tags or "")
            and entry.path == record.path
        )

    @staticmethod
    def _sync_index(
        session: Session,
        operation: str,
        media_id: str,
        write: Callable[[], None],
    ) -> bool:
        try:
            with session.begin_nested():
                write()
        except IndexSyncError as exc:
            logger.error(
                "search.index.sync_failed",
                extra={"media_id": media_id, "operation": operation},
                exc_info=exc,
            )
            return False
        return True

    @staticmethod
    def _to_domain(model: MediaModel) -> MediaRecord:
        return MediaRecord(
            id=model.id,
            path=model.path,
            mime=model.mime,
            size_bytes=model.size_bytes,
            tags=model.tags or "",
            processing_status=ProcessingStatus(model.processing_status),
            created_at=model.created_at,
            thumb=model.thumb,
            width=model.width,
            height=model.height,
            ocr_text=model.ocr_text,
            sha256=model.sha256,
        )
