"""Playlist reads and writes."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from services.errors import InvalidArgumentError, NotFoundError, UnauthorizedError
from services.keys import require_key, require_keys
from services.store import EntityStore
from services.users import require_user
from services.views import In, PageRequest, PipelineExecutor, assert_playlist_access
from services.views.compiler import playlist_contents_view, playlist_options_view, user_playlists_view

logger = logging.getLogger(__name__)

PLAYLIST_VISIBILITIES = ("public", "private")


def _normalize_visibility(value: Any, default: Optional[str] = None) -> Optional[str]:
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized not in PLAYLIST_VISIBILITIES:
        raise InvalidArgumentError("visibility must be public or private.")
    return normalized


def _normalize_title(value: Any) -> str:
    title = str(value or "").strip()
    if not title:
        raise InvalidArgumentError("Playlist title is required.")
    return title


async def _owned_playlist(store: EntityStore, playlist_id: str, user_id: str) -> Dict[str, Any]:
    playlist = await store.get("playlists", playlist_id)
    if playlist is None:
        raise NotFoundError("Playlist not found.")
    if playlist["owner_id"] != user_id:
        raise UnauthorizedError("Only the owner can change this playlist.")
    return playlist


async def create_playlist_service(*, user_id: str, payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    store = EntityStore(db)
    await require_user(store, user_id)
    playlist = await store.insert(
        "playlists",
        {
            "owner_id": user_id,
            "title": _normalize_title(payload.get("title")),
            "description": str(payload.get("description") or "").strip(),
            "visibility": _normalize_visibility(payload.get("visibility"), default="private"),
            "video_ids": require_keys(payload.get("video_ids") or [], "video_ids"),
        },
    )
    await store.commit()
    logger.info("playlist_created user=%s playlist=%s videos=%s", user_id, playlist["id"], len(playlist["video_ids"]))
    return playlist


async def get_playlist_service(
    playlist_id: str,
    viewer_id: Optional[str],
    page: Any,
    limit: Any,
    db: AsyncSession,
) -> Dict[str, Any]:
    """Playlist with its videos expanded in playlist order; hidden videos are dropped."""
    key = require_key(playlist_id, "playlist_id")
    request = PageRequest.build(page, limit)
    store = EntityStore(db)
    assert_playlist_access(await store.get("playlists", key), viewer_id)
    result = await PipelineExecutor(store).paginate(playlist_contents_view(key, request), request, viewer_id)
    return result.as_dict()


async def list_user_playlists_service(
    *,
    owner_id: str,
    viewer_id: Optional[str],
    visibility: Optional[str] = None,
    page: Any = None,
    limit: Any = None,
    db: AsyncSession,
) -> Dict[str, Any]:
    owner_key = require_key(owner_id, "owner_id")
    request = PageRequest.build(page, limit)
    if visibility is not None and str(visibility).strip().lower() == "all":
        resolved = None
    else:
        resolved = _normalize_visibility(visibility)
    if viewer_id != owner_key:
        # Other viewers only ever get the owner's public playlists.
        resolved = "public"

    store = EntityStore(db)
    if await store.get("users", owner_key) is None:
        raise NotFoundError("User not found.")
    result = await PipelineExecutor(store).paginate(
        user_playlists_view(owner_key, resolved, request),
        request,
        viewer_id,
    )
    return result.as_dict()


async def get_playlist_options_service(*, user_id: str, video_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    """The user's playlists with ``is_present`` telling whether the video is in each one."""
    key = require_key(video_id, "video_id")
    store = EntityStore(db)
    await require_user(store, user_id)
    view = playlist_options_view(user_id, key)
    return await PipelineExecutor(store).run(view.collection, view.stages, user_id)


async def update_playlist_service(
    *,
    user_id: str,
    playlist_id: str,
    payload: Dict[str, Any],
    db: AsyncSession,
) -> Dict[str, Any]:
    key = require_key(playlist_id, "playlist_id")
    store = EntityStore(db)
    await _owned_playlist(store, key, user_id)

    patch: Dict[str, Any] = {}
    if payload.get("title") is not None:
        patch["title"] = _normalize_title(payload["title"])
    if payload.get("description") is not None:
        patch["description"] = str(payload["description"]).strip()
    if payload.get("visibility") is not None:
        patch["visibility"] = _normalize_visibility(payload["visibility"])
    if payload.get("video_ids") is not None:
        patch["video_ids"] = require_keys(payload["video_ids"], "video_ids")
    if not patch:
        raise InvalidArgumentError("Nothing to update.")

    updated = await store.update("playlists", key, patch)
    await store.commit()
    return updated


async def delete_playlist_service(*, user_id: str, playlist_id: str, db: AsyncSession) -> Dict[str, Any]:
    key = require_key(playlist_id, "playlist_id")
    store = EntityStore(db)
    await _owned_playlist(store, key, user_id)
    await store.delete("playlists", key)
    await store.commit()
    logger.info("playlist_deleted user=%s playlist=%s", user_id, key)
    return {"playlist_id": key, "deleted": True}


async def update_video_playlists_service(
    *,
    user_id: str,
    video_id: str,
    add_to: Sequence[str] = (),
    remove_from: Sequence[str] = (),
    db: AsyncSession,
) -> Dict[str, Any]:
    """Add a video to some playlists and remove it from others in one change.

    Every referenced playlist must exist and belong to the user before any of
    them is modified.
    """
    key = require_key(video_id, "video_id")
    add_keys = require_keys(add_to, "add_to")
    remove_keys = require_keys(remove_from, "remove_from")
    if set(add_keys) & set(remove_keys):
        raise InvalidArgumentError("A playlist cannot appear in both add_to and remove_from.")
    if not add_keys and not remove_keys:
        raise InvalidArgumentError("Nothing to update.")

    store = EntityStore(db)
    if add_keys and await store.get("videos", key) is None:
        raise NotFoundError("Video not found.")

    wanted = tuple(add_keys + remove_keys)
    playlists = {row["id"]: row for row in await store.find("playlists", In("id", wanted))}
    missing = [playlist_id for playlist_id in wanted if playlist_id not in playlists]
    if missing:
        raise NotFoundError(f"Playlist not found: {missing[0]}.")
    if any(row["owner_id"] != user_id for row in playlists.values()):
        raise UnauthorizedError("Only the owner can change these playlists.")

    for playlist_id in add_keys:
        video_ids = playlists[playlist_id]["video_ids"] or []
        if key not in video_ids:
            await store.update("playlists", playlist_id, {"video_ids": video_ids + [key]})
    for playlist_id in remove_keys:
        video_ids = playlists[playlist_id]["video_ids"] or []
        if key in video_ids:
            await store.update("playlists", playlist_id, {"video_ids": [item for item in video_ids if item != key]})
    await store.commit()
    logger.info("video_playlists_updated user=%s video=%s added=%s removed=%s", user_id, key, len(add_keys), len(remove_keys))
    return {"video_id": key, "added_to": add_keys, "removed_from": remove_keys}
