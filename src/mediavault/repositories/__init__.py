"""Persistence layer for media records."""

from .media_repository import MediaRepository

__all__ = ["MediaRepository"]
