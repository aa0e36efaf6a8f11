"""HTTP surface for MediaVault."""

from .media_api import router

__all__ = ["router"]
