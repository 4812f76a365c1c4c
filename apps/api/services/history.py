"""Watch history: recording views and paging the embedded history list."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import utcnow
from services.keys import require_key
from services.store import EntityStore
from services.users import require_user
from services.views import PageRequest, PipelineExecutor, assert_video_access, build_page
from services.views.compiler import WATCH_HISTORY_EXPANSION

logger = logging.getLogger(__name__)


def push_history_entry(history: List[Dict[str, Any]], video_id: str, watched_at: str) -> List[Dict[str, Any]]:
    """Move ``video_id`` to the front of a newest-first history, keeping one entry per video."""
    entries = [entry for entry in history or [] if entry.get("video_id") != video_id]
    entries.insert(0, {"video_id": video_id, "watched_at": watched_at})
    cap = max(int(settings.WATCH_HISTORY_MAX_ENTRIES), 1)
    return entries[:cap]


async def record_video_view_service(*, user_id: str, video_id: str, db: AsyncSession) -> Dict[str, Any]:
    key = require_key(video_id, "video_id")
    store = EntityStore(db)
    user = await require_user(store, user_id)
    video = assert_video_access(await store.get("videos", key), user_id)

    watched_at = utcnow().isoformat()
    await store.increment("videos", key, "views")
    await store.update("users", user_id, {"watch_history": push_history_entry(user.get("watch_history"), key, watched_at)})
    await store.commit()
    logger.info("video_view_recorded user=%s video=%s", user_id, key)
    return {"video_id": key, "views": int(video.get("views") or 0) + 1, "watched_at": watched_at}


async def get_watch_history_service(
    *,
    user_id: str,
    page: Any = None,
    limit: Any = None,
    db: AsyncSession,
) -> Dict[str, Any]:
    """One page of the viewer's history, newest first.

    The embedded list is sliced before expansion, so entries whose video was
    deleted or hidden still count toward ``total_docs`` but are left out of
    ``docs``.
    """
    request = PageRequest.build(page, limit)
    store = EntityStore(db)
    user = await require_user(store, user_id)
    entries = [entry for entry in user.get("watch_history") or [] if entry.get("video_id")]

    seeds = [{"video_id": entry["video_id"], "watched_at": entry.get("watched_at")} for entry in request.window(entries)]
    expanded = await PipelineExecutor(store).apply(seeds, WATCH_HISTORY_EXPANSION, user_id)
    docs = [dict(row["video"], watched_at=row["watched_at"]) for row in expanded]
    return build_page(docs, len(entries), request).as_dict()

