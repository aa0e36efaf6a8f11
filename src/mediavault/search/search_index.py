"""SQLite FTS5 projection of media records.

The index holds ``(id, ocr_text, tags, path)`` per record. ``id`` and ``path``
are stored but unindexed, so only OCR text and tags participate in ``MATCH``.
The index is derived data: every write goes through the caller's session so
it can share the transaction of the record write it mirrors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from ..exceptions import IndexSyncError, SearchQueryError

logger = logging.getLogger(__name__)

INDEX_TABLE = "media_fts"

_CREATE_INDEX_TABLE = text(
    f"CREATE VIRTUAL TABLE IF NOT EXISTS {INDEX_TABLE} "
    "USING fts5(id UNINDEXED, ocr_text, tags, path UNINDEXED)"
)


def create_index_table(conn: Connection) -> None:
    conn.execute(_CREATE_INDEX_TABLE)


# sqlite reports malformed MATCH expressions as OperationalError too
_QUERY_SYNTAX_PREFIXES = (
    "fts5:",
    "unterminated string",
    "no such column",
    "unknown special query",
)


def _is_query_syntax_error(exc: sa_exc.OperationalError) -> bool:
    return str(exc.orig).lower().startswith(_QUERY_SYNTAX_PREFIXES)


@dataclass(slots=True, frozen=True)
class SearchIndexEntry:
    id: str
    ocr_text: str
    tags: str
    path: str


class SearchIndex:
    """Reads and writes the ``media_fts`` table."""

    def insert(self, session: Session, entry: SearchIndexEntry) -> None:
        self._write(
            session,
            "insert",
            entry.id,
            f"INSERT INTO {INDEX_TABLE} (id, ocr_text, tags, path) "
            "VALUES (:id, :ocr_text, :tags, :path)",
            {"id": entry.id, "ocr_text": entry.ocr_text, "tags": entry.tags, "path": entry.path},
        )

    def update_tags(self, session: Session, media_id: str, tags: str) -> None:
        self._write(
            session,
            "update_tags",
            media_id,
            f"UPDATE {INDEX_TABLE} SET tags = :tags WHERE id = :id",
            {"id": media_id, "tags": tags},
        )

    def update_ocr_text(self, session: Session, media_id: str, ocr_text: str) -> None:
        self._write(
            session,
            "update_ocr_text",
            media_id,
            f"UPDATE {INDEX_TABLE} SET ocr_text = :ocr_text WHERE id = :id",
            {"id": media_id, "ocr_text": ocr_text},
        )

    def get_entry(self, session: Session, media_id: str) -> SearchIndexEntry | None:
        row = session.execute(
            text(f"SELECT id, ocr_text, tags, path FROM {INDEX_TABLE} WHERE id = :id"),
            {"id": media_id},
        ).first()
        if row is None:
            return None
        return SearchIndexEntry(
            id=row.id,
            ocr_text=row.ocr_text or "",
            tags=row.tags or "",
            path=row.path or "",
        )

    def match(self, session: Session, query: str) -> list[str]:
        """Return ids whose indexed text matches ``query`` (FTS5 syntax, verbatim).

        Only a malformed expression becomes :class:`SearchQueryError`; store
        failures propagate as SQLAlchemy errors.
        """
        try:
            rows = session.execute(
                text(f"SELECT id FROM {INDEX_TABLE} WHERE {INDEX_TABLE} MATCH :query"),
                {"query": query},
            ).all()
        except sa_exc.OperationalError as exc:
            if not _is_query_syntax_error(exc):
                raise
            logger.warning("search.query.rejected", extra={"query": query, "error": str(exc.orig)})
            raise SearchQueryError(f"invalid search query {query!r}: {exc.orig}") from exc
        ids = list(dict.fromkeys(row.id for row in rows))
        logger.debug("search.query.matched", extra={"query": query, "matches": len(ids)})
        return ids

    @staticmethod
    def _write(session: Session, operation: str, media_id: str, statement: str, params: dict) -> None:
        try:
            session.execute(text(statement), params)
        except sa_exc.SQLAlchemyError as exc:
            raise IndexSyncError(f"index {operation} failed for '{media_id}': {exc}") from exc
