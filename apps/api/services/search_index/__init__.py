"""Public search index utilities."""

from services.search_index.providers import BaseSearchIndex, DatabaseSearchIndex, get_search_index
from services.search_index.types import SEARCHABLE_VIDEO_FIELDS, SearchHit, SearchIndexUnavailableError

__all__ = [
    "BaseSearchIndex",
    "DatabaseSearchIndex",
    "SEARCHABLE_VIDEO_FIELDS",
    "SearchHit",
    "SearchIndexUnavailableError",
    "get_search_index",
]
