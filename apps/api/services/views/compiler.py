"""Statically declared view pipelines.

Each builder returns a ``CompiledView`` whose ``match`` fragment is shared by the
count path and the page-fetch path.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

from services.views.executor import CompiledView
from services.views.pagination import PageRequest
from services.views.predicates import Eq, In, Ne
from services.views.stages import (
    Filter,
    Guard,
    JoinMany,
    JoinOne,
    Project,
    Stage,
    contains_value,
    count_of,
    derive,
    filter_and,
    filter_equals,
    sort_by,
    viewer_present_in,
)


PUBLIC_USER_FIELDS = ("id", "handle", "display_name", "avatar_url")
CHANNEL_FIELDS = PUBLIC_USER_FIELDS + (
    "cover_image_url",
    "created_at",
    "subscriber_count",
    "subscribed_to_count",
    "is_subscribed",
)
VIDEO_CARD_FIELDS = (
    "id",
    "title",
    "description",
    "thumbnail_url",
    "duration_s",
    "views",
    "is_public",
    "created_at",
    "owner",
)
VIDEO_DETAIL_FIELDS = VIDEO_CARD_FIELDS + (
    "video_url",
    "updated_at",
    "total_likes_count",
    "total_dislikes_count",
    "is_liked",
    "is_disliked",
)
REACTION_SUMMARY_FIELDS = ("total_likes_count", "total_dislikes_count", "is_liked", "is_disliked")
COMMENT_FIELDS = ("id", "content", "video_id", "parent_id", "owner", "created_at", "updated_at") + REACTION_SUMMARY_FIELDS
PLAYLIST_FIELDS = (
    "id",
    "title",
    "description",
    "visibility",
    "owner",
    "videos",
    "total_videos",
    "created_at",
    "updated_at",
)
TWEET_FIELDS = ("id", "content", "owner", "created_at")

NEWEST_FIRST = sort_by(("created_at", -1))
OLDEST_FIRST = sort_by(("created_at", 1))


def owner_join(local_key: str = "owner_id", as_field: str = "owner") -> JoinOne:
    return JoinOne(local_key, "users", "id", as_field, pipeline=(Project(include=PUBLIC_USER_FIELDS),))


def reaction_joins(target_kind: str) -> Tuple[Stage, ...]:
    return (
        JoinMany(
            "id",
            "reactions",
            "target_id",
            "likes",
            pipeline=(filter_and(Eq("target_kind", target_kind), Eq("kind", "like")),),
        ),
        JoinMany(
            "id",
            "reactions",
            "target_id",
            "dislikes",
            pipeline=(filter_and(Eq("target_kind", target_kind), Eq("kind", "dislike")),),
        ),
    )


REACTION_SUMMARY = derive(
    total_likes_count=count_of("likes"),
    total_dislikes_count=count_of("dislikes"),
    is_liked=viewer_present_in("likes", "actor_id"),
    is_disliked=viewer_present_in("dislikes", "actor_id"),
)

VIDEO_CARD_PIPELINE: Tuple[Stage, ...] = (
    Guard("video"),
    owner_join(),
    Project(include=VIDEO_CARD_FIELDS),
)

REPLY_PIPELINE: Tuple[Stage, ...] = (
    OLDEST_FIRST,
    owner_join(),
    *reaction_joins("comment"),
    REACTION_SUMMARY,
    Project(include=COMMENT_FIELDS),
)

PLAYLIST_EXPANSION: Tuple[Stage, ...] = (
    JoinMany("video_ids", "videos", "id", "videos", pipeline=VIDEO_CARD_PIPELINE, keep_local_order=True),
    owner_join(),
    derive(total_videos=count_of("videos")),
    Project(include=PLAYLIST_FIELDS),
)

REACTION_TARGETS: Dict[str, Tuple[str, Tuple[Stage, ...]]] = {
    "video": ("videos", VIDEO_CARD_PIPELINE),
    "comment": (
        "comments",
        (
            JoinOne(
                "video_id",
                "videos",
                "id",
                "video",
                pipeline=(Guard("video"), Project(include=("id", "title", "thumbnail_url"))),
            ),
            owner_join(),
            Project(include=("id", "content", "video", "parent_id", "owner", "created_at")),
        ),
    ),
    "tweet": ("tweets", (owner_join(), Project(include=TWEET_FIELDS))),
}

# Applied to [{"video_id", "watched_at"}] entries sliced from a user's watch history.
WATCH_HISTORY_EXPANSION: Tuple[Stage, ...] = (
    JoinOne("video_id", "videos", "id", "video", pipeline=VIDEO_CARD_PIPELINE),
    sort_by(("watched_at", -1)),
    Project(include=("video_id", "watched_at", "video")),
)

VIDEO_SORT_FIELDS = {"created_at", "views", "duration_s", "title"}


def comment_thread_view(video_id: str, request: PageRequest) -> CompiledView:
    """Top-level comments of a video, newest first, each with its direct replies."""
    match: Tuple[Stage, ...] = (filter_and(Eq("video_id", video_id), Eq("parent_id", None)),)
    return CompiledView(
        collection="comments",
        match=match,
        stages=match + (
            NEWEST_FIRST,
            request.as_stage(),
            JoinMany("id", "comments", "parent_id", "replies", pipeline=REPLY_PIPELINE),
            owner_join(),
            *reaction_joins("comment"),
            REACTION_SUMMARY,
            Project(include=COMMENT_FIELDS + ("replies",)),
        ),
    )


def channel_profile_view(handle: str) -> CompiledView:
    match: Tuple[Stage, ...] = (filter_equals("handle", handle.strip().lower()),)
    return CompiledView(
        collection="users",
        match=match,
        stages=match + (
            JoinMany("id", "subscriptions", "channel_id", "subscribers"),
            JoinMany("id", "subscriptions", "subscriber_id", "subscribed_to"),
            derive(
                subscriber_count=count_of("subscribers"),
                subscribed_to_count=count_of("subscribed_to"),
                is_subscribed=viewer_present_in("subscribers", "subscriber_id"),
            ),
            Project(include=CHANNEL_FIELDS),
        ),
    )


def subscribed_channels_view(subscriber_id: str, request: PageRequest) -> CompiledView:
    match: Tuple[Stage, ...] = (filter_equals("subscriber_id", subscriber_id),)
    return CompiledView(
        collection="subscriptions",
        match=match,
        stages=match + (
            NEWEST_FIRST,
            request.as_stage(),
            owner_join("channel_id", "channel"),
            Project(include=("id", "created_at", "channel")),
        ),
    )


def reaction_list_view(actor_id: str, target_kind: str, kind: str, request: PageRequest) -> CompiledView:
    """Visible targets the actor reacted to with ``kind``, most recent reaction first.

    Target visibility is part of the match fragment, so the count agrees with the
    pages; the nested guards only back it up.
    """
    collection, target_pipeline = REACTION_TARGETS[target_kind]
    match: Tuple[Stage, ...] = (
        filter_and(Eq("actor_id", actor_id), Eq("target_kind", target_kind), Eq("kind", kind)),
        Guard(f"reacted_{target_kind}"),
    )
    return CompiledView(
        collection="reactions",
        match=match,
        stages=match + (
            NEWEST_FIRST,
            request.as_stage(),
            JoinOne("target_id", collection, "id", target_kind, pipeline=target_pipeline),
            Project(include=("id", "kind", "target_kind", "created_at", target_kind)),
        ),
    )


def playlist_contents_view(playlist_id: str, request: PageRequest) -> CompiledView:
    match: Tuple[Stage, ...] = (filter_equals("id", playlist_id), Guard("playlist"))
    return CompiledView(
        collection="playlists",
        match=match,
        stages=match + (sort_by(("updated_at", -1)), request.as_stage()) + PLAYLIST_EXPANSION,
    )


def user_playlists_view(owner_id: str, visibility: Optional[str], request: PageRequest) -> CompiledView:
    """Playlists of ``owner_id``; the guard hides private ones from everyone but the owner."""
    match: Tuple[Stage, ...] = (filter_equals("owner_id", owner_id), Guard("playlist"))
    if visibility and visibility != "all":
        match = match + (filter_equals("visibility", visibility),)
    return CompiledView(
        collection="playlists",
        match=match,
        stages=match + (sort_by(("updated_at", -1)), request.as_stage()) + PLAYLIST_EXPANSION,
    )


def playlist_options_view(owner_id: str, video_id: str) -> CompiledView:
    match: Tuple[Stage, ...] = (filter_equals("owner_id", owner_id),)
    return CompiledView(
        collection="playlists",
        match=match,
        stages=match + (
            sort_by(("title", 1)),
            derive(is_present=contains_value("video_ids", video_id)),
            Project(include=("id", "title", "visibility", "is_present")),
        ),
    )


def video_detail_view(video_id: str) -> CompiledView:
    match: Tuple[Stage, ...] = (filter_equals("id", video_id), Guard("video"))
    return CompiledView(
        collection="videos",
        match=match,
        stages=match + (
            owner_join(),
            *reaction_joins("video"),
            REACTION_SUMMARY,
            Project(include=VIDEO_DETAIL_FIELDS),
        ),
    )


def video_listing_view(
    request: PageRequest,
    owner_id: Optional[str] = None,
    candidate_ids: Optional[Sequence[str]] = None,
    sort: Optional[Tuple[str, int]] = None,
) -> CompiledView:
    """Visible videos, optionally limited to one owner and/or search candidates.

    Search candidates keep their rank order unless an explicit sort is given;
    ranking happens in memory, so the whole candidate set is fetched.
    """
    match: Tuple[Stage, ...] = (Guard("video"),)
    if owner_id:
        match = match + (filter_equals("owner_id", owner_id),)
    if candidate_ids is not None:
        match = match + (Filter(In("id", tuple(candidate_ids))),)

    tail: Tuple[Stage, ...] = (owner_join(), Project(include=VIDEO_CARD_FIELDS))
    if sort is not None:
        ordering: Tuple[Stage, ...] = (sort_by(sort), request.as_stage())
    elif candidate_ids is not None:
        ranks = {video_id: position for position, video_id in enumerate(candidate_ids)}
        ordering = (
            derive(search_rank=lambda record, viewer_id: ranks.get(record["id"])),
            sort_by(("search_rank", 1)),
            request.as_stage(),
        )
    else:
        ordering = (NEWEST_FIRST, request.as_stage())
    return CompiledView(collection="videos", match=match, stages=match + ordering + tail)


def video_suggestions_view(video: Dict[str, str], candidate_ids: Sequence[str], request: PageRequest) -> CompiledView:
    """Other visible videos by the same owner that the search index relates to ``video``."""
    match: Tuple[Stage, ...] = (
        filter_and(
            In("id", tuple(candidate_ids)),
            Ne("id", video["id"]),
            Eq("owner_id", video["owner_id"]),
        ),
        Guard("video"),
    )
    return CompiledView(
        collection="videos",
        match=match,
        stages=match + (
            sort_by(("views", -1), ("created_at", -1)),
            request.as_stage(),
            owner_join(),
            Project(include=VIDEO_CARD_FIELDS),
        ),
    )
