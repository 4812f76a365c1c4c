"""Search index contracts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from services.errors import InternalError


SEARCHABLE_VIDEO_FIELDS: Tuple[str, ...] = ("title", "description")


class SearchIndexUnavailableError(InternalError):
    """Raised when the configured search index cannot serve queries."""


@dataclass(frozen=True)
class SearchHit:
    key: str
    score: float
    title: str
    description: str
