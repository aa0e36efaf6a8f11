"""Full-text search projection of media records."""

from .search_index import SearchIndex, SearchIndexEntry

__all__ = ["SearchIndex", "SearchIndexEntry"]
