"""Free-text lookup of media records."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from ..exceptions import handle_sqlalchemy_errors
from ..media.media_models import MediaRecord
from ..repositories.media_repository import MediaRepository
from .search_index import SearchIndex

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QueryEngine:
    """Resolve a query against the index, then load matching records newest first.

    Tokenization and matching are the index's own (FTS5 query syntax); results
    are not re-ranked here.
    """

    session_factory: Callable[[], Session]
    repository: MediaRepository
    index: SearchIndex = field(default_factory=SearchIndex)

    def search(self, query: str | None) -> list[MediaRecord]:
        normalized = (query or "").strip()
        if not normalized:
            return self.repository.list_recent()

        with self.session_factory() as session, handle_sqlalchemy_errors(entity="media_fts"):
            ids = self.index.match(session, normalized)
        if not ids:
            logger.info("search.query.no_match", extra={"query": normalized})
            return []

        records = self.repository.list_by_ids(ids)
        logger.info(
            "search.query.done",
            extra={"query": normalized, "matches": len(ids), "returned": len(records)},
        )
        return records
