"""Comment thread router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_viewer_context, viewer_id_of
from routers.rate_limit import rate_limit
from services.comments import (
    add_comment_service,
    delete_comment_service,
    get_video_comments_service,
    update_comment_service,
)

router = APIRouter()


class AddCommentRequest(BaseModel):
    content: str
    parent_id: Optional[str] = None


class UpdateCommentRequest(BaseModel):
    content: str


@router.get("/video/{video_id}")
async def get_video_comments(
    video_id: str,
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    viewer: Optional[AuthContext] = Depends(get_viewer_context),
    db: AsyncSession = Depends(get_db),
):
    return await get_video_comments_service(video_id, viewer_id_of(viewer), page, limit, db)


@router.post("/video/{video_id}")
async def add_comment(
    video_id: str,
    request: AddCommentRequest,
    _rate_limit: None = Depends(rate_limit("comment_add", limit=120, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await add_comment_service(
        user_id=auth.user_id,
        video_id=video_id,
        content=request.content,
        parent_id=request.parent_id,
        db=db,
    )


@router.patch("/{comment_id}")
async def update_comment(
    comment_id: str,
    request: UpdateCommentRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await update_comment_service(user_id=auth.user_id, comment_id=comment_id, content=request.content, db=db)


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await delete_comment_service(user_id=auth.user_id, comment_id=comment_id, db=db)
