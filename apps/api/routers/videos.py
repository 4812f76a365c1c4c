"""Video listing, detail and metadata router."""

from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_viewer_context, viewer_id_of
from routers.rate_limit import rate_limit
from services.history import record_video_view_service
from services.playlists import update_video_playlists_service
from services.videos import (
    create_video_service,
    delete_video_service,
    get_search_suggestions_service,
    get_video_service,
    get_video_suggestions_service,
    list_videos_service,
    update_video_service,
)

router = APIRouter()


class CreateVideoRequest(BaseModel):
    title: str
    description: Optional[str] = ""
    video_url: str
    thumbnail_url: Optional[str] = None
    duration_s: int = Field(default=0, ge=0)
    is_public: bool = True
    is_nsfw: bool = False


class UpdateVideoRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    is_public: Optional[bool] = None
    is_nsfw: Optional[bool] = None


class UpdateVideoPlaylistsRequest(BaseModel):
    add_to: List[str] = Field(default_factory=list)
    remove_from: List[str] = Field(default_factory=list)


@router.get("")
async def list_videos(
    query: Optional[str] = None,
    owner_id: Optional[str] = None,
    sort_by: Optional[Literal["created_at", "views", "duration_s", "title"]] = None,
    sort_direction: Literal["asc", "desc"] = "desc",
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    viewer: Optional[AuthContext] = Depends(get_viewer_context),
    db: AsyncSession = Depends(get_db),
):
    return await list_videos_service(
        viewer_id=viewer_id_of(viewer),
        query=query,
        owner_id=owner_id,
        sort_by=sort_by,
        sort_direction=sort_direction,
        page=page,
        limit=limit,
        db=db,
    )


@router.get("/search/suggestions")
async def search_suggestions(
    query: str = "",
    viewer: Optional[AuthContext] = Depends(get_viewer_context),
    db: AsyncSession = Depends(get_db),
):
    return {"suggestions": await get_search_suggestions_service(query, viewer_id_of(viewer), db)}


@router.post("")
async def create_video(
    request: CreateVideoRequest,
    _rate_limit: None = Depends(rate_limit("video_create", limit=30, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await create_video_service(user_id=auth.user_id, payload=request.model_dump(), db=db)


@router.get("/{video_id}")
async def get_video(
    video_id: str,
    viewer: Optional[AuthContext] = Depends(get_viewer_context),
    db: AsyncSession = Depends(get_db),
):
    return await get_video_service(video_id, viewer_id_of(viewer), db)


@router.get("/{video_id}/suggestions")
async def get_video_suggestions(
    video_id: str,
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    viewer: Optional[AuthContext] = Depends(get_viewer_context),
    db: AsyncSession = Depends(get_db),
):
    return await get_video_suggestions_service(video_id, viewer_id_of(viewer), page, limit, db)


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    request: UpdateVideoRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_video_service(
        user_id=auth.user_id,
        video_id=video_id,
        payload=request.model_dump(exclude_none=True),
        db=db,
    )


@router.delete("/{video_id}")
async def delete_video(
    video_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await delete_video_service(user_id=auth.user_id, video_id=video_id, db=db)


@router.post("/{video_id}/view")
async def record_video_view(
    video_id: str,
    _rate_limit: None = Depends(rate_limit("video_view", limit=600, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await record_video_view_service(user_id=auth.user_id, video_id=video_id, db=db)


@router.patch("/{video_id}/playlists")
async def update_video_playlists(
    video_id: str,
    request: UpdateVideoPlaylistsRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_video_playlists_service(
        user_id=auth.user_id,
        video_id=video_id,
        add_to=request.add_to,
        remove_from=request.remove_from,
        db=db,
    )
