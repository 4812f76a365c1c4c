"""Video listings, detail, suggestions and metadata writes."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from services.errors import InvalidArgumentError, NotFoundError, UnauthorizedError
from services.keys import require_key
from services.search import normalize_search_text, record_search_query
from services.search_index import get_search_index
from services.store import EntityStore
from services.users import require_user
from services.views import (
    And,
    Eq,
    Filter,
    Guard,
    In,
    Ne,
    PageRequest,
    PipelineExecutor,
    Project,
    assert_video_access,
)
from services.views.compiler import (
    VIDEO_SORT_FIELDS,
    video_detail_view,
    video_listing_view,
    video_suggestions_view,
)

logger = logging.getLogger(__name__)

EDITABLE_VIDEO_FIELDS = ("title", "description", "thumbnail_url", "is_public", "is_nsfw")


def _resolve_sort(sort_by: Optional[str], sort_direction: Optional[str]):
    if not sort_by:
        return None
    if sort_by not in VIDEO_SORT_FIELDS:
        raise InvalidArgumentError(f"sort_by must be one of: {', '.join(sorted(VIDEO_SORT_FIELDS))}.")
    direction = str(sort_direction or "desc").strip().lower()
    if direction not in {"asc", "desc"}:
        raise InvalidArgumentError("sort_direction must be asc or desc.")
    return (sort_by, 1 if direction == "asc" else -1)


def _normalize_title(title: Any) -> str:
    text = str(title or "").strip()
    if not text:
        raise InvalidArgumentError("Video title is required.")
    return text


async def _owned_video(store: EntityStore, video_id: str, user_id: str) -> Dict[str, Any]:
    video = await store.get("videos", video_id)
    if video is None:
        raise NotFoundError("Video not found.")
    if video["owner_id"] != user_id:
        raise UnauthorizedError("Only the owner can change this video.")
    return video


async def list_videos_service(
    *,
    viewer_id: Optional[str],
    query: Optional[str] = None,
    owner_id: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_direction: Optional[str] = None,
    page: Any = None,
    limit: Any = None,
    db: AsyncSession,
) -> Dict[str, Any]:
    request = PageRequest.build(page, limit)
    owner_key = require_key(owner_id, "owner_id") if owner_id else None
    sort = _resolve_sort(sort_by, sort_direction)
    store = EntityStore(db)

    candidate_ids = None
    text = normalize_search_text(query or "")
    if text:
        await record_search_query(store, text)
        candidate_ids = await get_search_index(db).candidate_keys(text, limit=settings.SEARCH_MAX_CANDIDATES)
        logger.info("video_search query=%r candidates=%s", text, len(candidate_ids))

    view = video_listing_view(request, owner_id=owner_key, candidate_ids=candidate_ids, sort=sort)
    result = await PipelineExecutor(store).paginate(view, request, viewer_id)
    return result.as_dict()


async def get_video_service(video_id: str, viewer_id: Optional[str], db: AsyncSession) -> Dict[str, Any]:
    key = require_key(video_id, "video_id")
    store = EntityStore(db)
    assert_video_access(await store.get("videos", key), viewer_id)
    video = await PipelineExecutor(store).first(video_detail_view(key), viewer_id)
    if video is None:
        raise NotFoundError("Video not found.")
    return video


async def get_video_suggestions_service(
    video_id: str,
    viewer_id: Optional[str],
    page: Any,
    limit: Any,
    db: AsyncSession,
) -> Dict[str, Any]:
    """Other videos from the same channel that the search index relates to this one."""
    key = require_key(video_id, "video_id")
    request = PageRequest.build(page, limit)
    store = EntityStore(db)
    video = assert_video_access(await store.get("videos", key), viewer_id)

    seed_text = " ".join(part for part in (video.get("title"), video.get("description")) if part)
    candidate_ids = await get_search_index(db).candidate_keys(seed_text, limit=settings.SEARCH_MAX_CANDIDATES)
    result = await PipelineExecutor(store).paginate(
        video_suggestions_view(video, candidate_ids, request),
        request,
        viewer_id,
    )
    return result.as_dict()


async def get_search_suggestions_service(query: str, viewer_id: Optional[str], db: AsyncSession) -> List[Dict[str, Any]]:
    text = normalize_search_text(query)
    if len(text) < settings.SEARCH_MIN_QUERY_LENGTH:
        return []

    hits = await get_search_index(db).search(text, limit=settings.SEARCH_MAX_CANDIDATES)
    if not hits:
        return []
    visible = await PipelineExecutor(EntityStore(db)).run(
        "videos",
        (
            Filter(In("id", tuple(hit.key for hit in hits))),
            Guard("video"),
            Project(include=("id", "title")),
        ),
        viewer_id,
    )
    visible_ids = {row["id"] for row in visible}
    suggestions = [
        {"id": hit.key, "title": hit.title, "score": hit.score}
        for hit in hits
        if hit.key in visible_ids
    ]
    return suggestions[: settings.SEARCH_SUGGESTION_LIMIT]


async def create_video_service(*, user_id: str, payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    store = EntityStore(db)
    user = await require_user(store, user_id)
    if not user.get("upload_terms_accepted"):
        raise UnauthorizedError("Accept the upload terms before publishing videos.")

    video_url = str(payload.get("video_url") or "").strip()
    if not video_url:
        raise InvalidArgumentError("video_url is required.")
    duration = payload.get("duration_s") or 0
    if duration < 0:
        raise InvalidArgumentError("duration_s must not be negative.")

    video = await store.insert(
        "videos",
        {
            "owner_id": user_id,
            "title": _normalize_title(payload.get("title")),
            "description": str(payload.get("description") or "").strip(),
            "video_url": video_url,
            "thumbnail_url": payload.get("thumbnail_url"),
            "duration_s": int(duration),
            "is_public": bool(payload.get("is_public", True)),
            "is_nsfw": bool(payload.get("is_nsfw", False)),
        },
    )
    await store.commit()
    logger.info("video_created user=%s video=%s public=%s", user_id, video["id"], video["is_public"])
    return video


async def update_video_service(
    *,
    user_id: str,
    video_id: str,
    payload: Dict[str, Any],
    db: AsyncSession,
) -> Dict[str, Any]:
    key = require_key(video_id, "video_id")
    store = EntityStore(db)
    await _owned_video(store, key, user_id)

    patch = {field: payload[field] for field in EDITABLE_VIDEO_FIELDS if payload.get(field) is not None}
    if "title" in patch:
        patch["title"] = _normalize_title(patch["title"])
    if not patch:
        raise InvalidArgumentError("Nothing to update.")
    updated = await store.update("videos", key, patch)
    await store.commit()
    return updated


async def delete_video_service(*, user_id: str, video_id: str, db: AsyncSession) -> Dict[str, Any]:
    """Delete a video, its comments and every reaction on the video or its comments.

    Playlist entries and watch-history entries pointing at the video are left in
    place; views drop them when they no longer resolve.
    """
    key = require_key(video_id, "video_id")
    store = EntityStore(db)
    await _owned_video(store, key, user_id)

    comment_ids = tuple(row["id"] for row in await store.find("comments", Eq("video_id", key)))
    reactions_deleted = await store.delete_where("reactions", And(Eq("target_kind", "video"), Eq("target_id", key)))
    if comment_ids:
        reactions_deleted += await store.delete_where(
            "reactions",
            And(Eq("target_kind", "comment"), In("target_id", comment_ids)),
        )
        await store.delete_where("comments", And(Eq("video_id", key), Ne("parent_id", None)))
        await store.delete_where("comments", Eq("video_id", key))
    await store.delete("videos", key)
    await store.commit()
    logger.info(
        "video_deleted user=%s video=%s comments=%s reactions=%s",
        user_id,
        key,
        len(comment_ids),
        reactions_deleted,
    )
    return {"video_id": key, "deleted": True, "comments_deleted": len(comment_ids), "reactions_deleted": reactions_deleted}
