"""Database models and bootstrap helpers."""

from .db_init import init_db
from .db_models import Base, MediaModel

__all__ = ["Base", "MediaModel", "init_db"]
