"""Search index providers.

The index only answers "which video keys match this text, best first"; the
view engine applies visibility, joins and pagination on top of the keys.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.video import Video
from services.search_index.types import SEARCHABLE_VIDEO_FIELDS, SearchHit, SearchIndexUnavailableError

logger = logging.getLogger(__name__)

FIELD_WEIGHTS = {"title": 2.0, "description": 1.0}


def tokenize(text: str) -> List[str]:
    return list(dict.fromkeys(re.findall(r"\w+", (text or "").lower())))


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class BaseSearchIndex(ABC):
    provider_name: str

    @abstractmethod
    async def search(self, query: str, fields: Sequence[str] = SEARCHABLE_VIDEO_FIELDS, *, limit: int) -> List[SearchHit]:
        raise NotImplementedError

    async def candidate_keys(self, query: str, fields: Sequence[str] = SEARCHABLE_VIDEO_FIELDS, *, limit: int) -> List[str]:
        return [hit.key for hit in await self.search(query, fields, limit=limit)]


class DatabaseSearchIndex(BaseSearchIndex):
    """Term matching against the videos table, ranked by weighted term hits."""

    provider_name = "database"

    def __init__(self, db: AsyncSession):
        self.db = db

    async def search(self, query: str, fields: Sequence[str] = SEARCHABLE_VIDEO_FIELDS, *, limit: int) -> List[SearchHit]:
        terms = tokenize(query)
        searchable = [field for field in fields if field in FIELD_WEIGHTS]
        if not terms or not searchable or limit <= 0:
            return []

        clauses = [
            getattr(Video, field).ilike(_like_pattern(term), escape="\\")
            for field in searchable
            for term in terms
        ]
        statement = select(Video.id, Video.title, Video.description).where(or_(*clauses))
        try:
            result = await self.db.execute(statement)
        except SQLAlchemyError as exc:
            logger.exception("search_index_failure provider=%s", self.provider_name)
            raise SearchIndexUnavailableError("Search index query failed.") from exc

        phrase = " ".join(terms)
        hits: List[SearchHit] = []
        for video_id, title, description in result.all():
            texts = {"title": (title or "").lower(), "description": (description or "").lower()}
            score = 0.0
            for field in searchable:
                score += sum(FIELD_WEIGHTS[field] for term in terms if term in texts[field])
            if phrase and phrase in texts["title"]:
                score += 3.0
            hits.append(SearchHit(key=video_id, score=score, title=title or "", description=description or ""))

        hits.sort(key=lambda hit: (-hit.score, hit.title, hit.key))
        return hits[:limit]


def get_search_index(db: AsyncSession) -> BaseSearchIndex:
    return DatabaseSearchIndex(db)
