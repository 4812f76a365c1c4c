"""Visibility rules for videos, playlists and reaction targets."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from models.comment import Comment
from models.tweet import Tweet
from models.video import Video
from services.errors import NotFoundError, UnauthorizedError
from services.views.predicates import And, Eq, Or, Predicate, Related


def video_visibility(viewer_id: Optional[str]) -> Predicate:
    """Safe videos that are public, or owned by the viewer."""
    if viewer_id is None:
        return And(Eq("is_nsfw", False), Eq("is_public", True))
    return And(Eq("is_nsfw", False), Or(Eq("is_public", True), Eq("owner_id", viewer_id)))


def playlist_visibility(viewer_id: Optional[str]) -> Predicate:
    if viewer_id is None:
        return Eq("visibility", "public")
    return Or(Eq("visibility", "public"), Eq("owner_id", viewer_id))


def reacted_video_visibility(viewer_id: Optional[str]) -> Predicate:
    """Reactions whose target video exists and is visible to the viewer."""
    return Related("target_id", Video, video_visibility(viewer_id))


def reacted_comment_visibility(viewer_id: Optional[str]) -> Predicate:
    return Related("target_id", Comment, Related("video_id", Video, video_visibility(viewer_id)))


def reacted_tweet_visibility(viewer_id: Optional[str]) -> Predicate:
    return Related("target_id", Tweet)


GUARDS: Dict[str, Callable[[Optional[str]], Predicate]] = {
    "video": video_visibility,
    "playlist": playlist_visibility,
    "reacted_video": reacted_video_visibility,
    "reacted_comment": reacted_comment_visibility,
    "reacted_tweet": reacted_tweet_visibility,
}


def guard_predicate(entity: str, viewer_id: Optional[str]) -> Predicate:
    try:
        return GUARDS[entity](viewer_id)
    except KeyError as exc:
        raise ValueError(f"No visibility guard for {entity!r}") from exc


def is_visible(entity: str, record: Dict[str, Any], viewer_id: Optional[str]) -> bool:
    return guard_predicate(entity, viewer_id).matches(record)


def assert_video_access(video: Optional[Dict[str, Any]], viewer_id: Optional[str]) -> Dict[str, Any]:
    """Root-entity check: unsafe or missing videos are not found, private ones are unauthorized."""
    if video is None or video.get("is_nsfw"):
        raise NotFoundError("Video not found.")
    if not video.get("is_public") and video.get("owner_id") != viewer_id:
        raise UnauthorizedError("You are not allowed to view this video.")
    return video


def assert_playlist_access(playlist: Optional[Dict[str, Any]], viewer_id: Optional[str]) -> Dict[str, Any]:
    if playlist is None:
        raise NotFoundError("Playlist not found.")
    if playlist.get("visibility") != "public" and playlist.get("owner_id") != viewer_id:
        raise UnauthorizedError("You are not allowed to view this playlist.")
    return playlist
