"""Comment threads and comment writes."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from services.errors import InvalidArgumentError, NotFoundError, UnauthorizedError
from services.keys import require_key
from services.store import EntityStore
from services.users import require_user
from services.views import And, Eq, In, PageRequest, PipelineExecutor, assert_video_access
from services.views.compiler import comment_thread_view

logger = logging.getLogger(__name__)


def _normalize_content(content: Optional[str]) -> str:
    text = str(content or "").strip()
    if not text:
        raise InvalidArgumentError("Comment content is required.")
    if len(text) > settings.COMMENT_MAX_LENGTH:
        raise InvalidArgumentError(f"Comment content must be at most {settings.COMMENT_MAX_LENGTH} characters.")
    return text


async def _owned_comment(store: EntityStore, comment_id: str, user_id: str) -> Dict[str, Any]:
    comment = await store.get("comments", comment_id)
    if comment is None:
        raise NotFoundError("Comment not found.")
    if comment["owner_id"] != user_id:
        raise UnauthorizedError("Only the author can change this comment.")
    return comment


async def get_video_comments_service(
    video_id: str,
    viewer_id: Optional[str],
    page: Any,
    limit: Any,
    db: AsyncSession,
) -> Dict[str, Any]:
    """Paginated top-level comments of a video, each carrying its replies and reaction summary."""
    key = require_key(video_id, "video_id")
    request = PageRequest.build(page, limit, default_limit=settings.COMMENT_PAGE_LIMIT)
    store = EntityStore(db)
    assert_video_access(await store.get("videos", key), viewer_id)
    result = await PipelineExecutor(store).paginate(comment_thread_view(key, request), request, viewer_id)
    return result.as_dict()


async def add_comment_service(
    *,
    user_id: str,
    video_id: str,
    content: str,
    parent_id: Optional[str] = None,
    db: AsyncSession,
) -> Dict[str, Any]:
    video_key = require_key(video_id, "video_id")
    text = _normalize_content(content)
    store = EntityStore(db)
    await require_user(store, user_id)
    assert_video_access(await store.get("videos", video_key), user_id)

    parent_key = None
    if parent_id:
        parent_key = require_key(parent_id, "parent_id")
        parent = await store.get("comments", parent_key)
        if parent is None:
            raise NotFoundError("Parent comment not found.")
        if parent["video_id"] != video_key:
            raise InvalidArgumentError("Parent comment belongs to a different video.")
        if parent["parent_id"] is not None:
            raise InvalidArgumentError("Replies can only be added to top-level comments.")

    comment = await store.insert(
        "comments",
        {"content": text, "owner_id": user_id, "video_id": video_key, "parent_id": parent_key},
    )
    await store.commit()
    logger.info("comment_added user=%s video=%s comment=%s reply=%s", user_id, video_key, comment["id"], bool(parent_key))
    return comment


async def update_comment_service(*, user_id: str, comment_id: str, content: str, db: AsyncSession) -> Dict[str, Any]:
    key = require_key(comment_id, "comment_id")
    text = _normalize_content(content)
    store = EntityStore(db)
    await _owned_comment(store, key, user_id)
    updated = await store.update("comments", key, {"content": text})
    await store.commit()
    return updated


async def delete_comment_service(*, user_id: str, comment_id: str, db: AsyncSession) -> Dict[str, Any]:
    """Delete a comment together with its replies and every reaction on them."""
    key = require_key(comment_id, "comment_id")
    store = EntityStore(db)
    await _owned_comment(store, key, user_id)

    replies = await store.find("comments", Eq("parent_id", key))
    removed_ids = tuple([key] + [reply["id"] for reply in replies])
    reactions_deleted = await store.delete_where(
        "reactions",
        And(Eq("target_kind", "comment"), In("target_id", removed_ids)),
    )
    replies_deleted = await store.delete_where("comments", Eq("parent_id", key))
    await store.delete("comments", key)
    await store.commit()
    logger.info(
        "comment_deleted user=%s comment=%s replies=%s reactions=%s",
        user_id,
        key,
        replies_deleted,
        reactions_deleted,
    )
    return {
        "comment_id": key,
        "deleted": True,
        "replies_deleted": replies_deleted,
        "reactions_deleted": reactions_deleted,
    }
