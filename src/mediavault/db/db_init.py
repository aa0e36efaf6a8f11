"""Database initialization helpers."""

from __future__ import annotations

import logging

from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Engine

from ..exceptions import StoreUnavailableError
from ..search.search_index import create_index_table
from .db_models import Base

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """Create the record table and its full-text index if missing."""
    try:
        Base.metadata.create_all(engine)
        with engine.begin() as conn:
            create_index_table(conn)
    except sa_exc.SQLAlchemyError as exc:
        logger.critical(
            "db.init.store_unavailable",
            extra={"database_url": engine.url.render_as_string(hide_password=True)},
            exc_info=exc,
        )
        raise StoreUnavailableError(f"store unavailable: {exc}") from exc
