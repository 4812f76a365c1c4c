"""Search history: recording queries and reporting the most frequent ones."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from services.errors import ConflictError
from services.store import EntityStore
from services.views import Eq, In, PageRequest

logger = logging.getLogger(__name__)


def normalize_search_text(text: str) -> str:
    return re.sub(r"\s+", " ", str(text or "")).strip().lower()


async def _evict_least_used(store: EntityStore) -> int:
    cap = max(int(settings.SEARCH_HISTORY_MAX_ENTRIES), 1)
    total = await store.count("search_queries")
    if total <= cap:
        return 0
    stale = await store.find("search_queries", sort=(("count", 1), ("updated_at", 1)), limit=total - cap)
    return await store.delete_where("search_queries", In("id", tuple(row["id"] for row in stale)))


async def record_search_query(store: EntityStore, text: str) -> None:
    """Count one use of ``text``; the history keeps only the most used entries."""
    normalized = normalize_search_text(text)
    if not normalized:
        return

    existing = await store.find("search_queries", Eq("search_text", normalized), limit=1)
    if existing:
        await store.increment("search_queries", existing[0]["id"], "count")
    else:
        try:
            await store.insert("search_queries", {"search_text": normalized, "count": 1})
        except ConflictError:
            rows = await store.find("search_queries", Eq("search_text", normalized), limit=1)
            if not rows:
                raise
            await store.increment("search_queries", rows[0]["id"], "count")

    evicted = await _evict_least_used(store)
    await store.commit()
    if evicted:
        logger.info("search_history_evicted count=%s", evicted)


async def get_top_searches_service(limit: Any, db: AsyncSession) -> List[Dict[str, Any]]:
    request = PageRequest.build(1, limit)
    rows = await EntityStore(db).find(
        "search_queries",
        sort=(("count", -1), ("updated_at", -1)),
        limit=request.limit,
    )
    return [{"search_text": row["search_text"], "count": row["count"]} for row in rows]
