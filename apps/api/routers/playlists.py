"""Playlist router."""

from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_viewer_context, viewer_id_of
from routers.rate_limit import rate_limit
from services.playlists import (
    create_playlist_service,
    delete_playlist_service,
    get_playlist_options_service,
    get_playlist_service,
    list_user_playlists_service,
    update_playlist_service,
)

router = APIRouter()


class CreatePlaylistRequest(BaseModel):
    title: str
    description: Optional[str] = ""
    visibility: Literal["public", "private"] = "private"
    video_ids: List[str] = Field(default_factory=list)


class UpdatePlaylistRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    visibility: Optional[Literal["public", "private"]] = None
    video_ids: Optional[List[str]] = None


@router.post("")
async def create_playlist(
    request: CreatePlaylistRequest,
    _rate_limit: None = Depends(rate_limit("playlist_create", limit=60, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await create_playlist_service(user_id=auth.user_id, payload=request.model_dump(), db=db)


@router.get("/user/{owner_id}")
async def list_user_playlists(
    owner_id: str,
    visibility: Optional[Literal["public", "private", "all"]] = None,
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    viewer: Optional[AuthContext] = Depends(get_viewer_context),
    db: AsyncSession = Depends(get_db),
):
    return await list_user_playlists_service(
        owner_id=owner_id,
        viewer_id=viewer_id_of(viewer),
        visibility=visibility,
        page=page,
        limit=limit,
        db=db,
    )


@router.get("/options/{video_id}")
async def get_playlist_options(
    video_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return {"playlists": await get_playlist_options_service(user_id=auth.user_id, video_id=video_id, db=db)}


@router.get("/{playlist_id}")
async def get_playlist(
    playlist_id: str,
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    viewer: Optional[AuthContext] = Depends(get_viewer_context),
    db: AsyncSession = Depends(get_db),
):
    return await get_playlist_service(playlist_id, viewer_id_of(viewer), page, limit, db)


@router.patch("/{playlist_id}")
async def update_playlist(
    playlist_id: str,
    request: UpdatePlaylistRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_playlist_service(
        user_id=auth.user_id,
        playlist_id=playlist_id,
        payload=request.model_dump(exclude_none=True),
        db=db,
    )


@router.delete("/{playlist_id}")
async def delete_playlist(
    playlist_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await delete_playlist_service(user_id=auth.user_id, playlist_id=playlist_id, db=db)
