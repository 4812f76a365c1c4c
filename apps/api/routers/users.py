"""Channel, subscription and watch-history router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_viewer_context, viewer_id_of
from routers.rate_limit import rate_limit
from services.channels import (
    get_channel_profile_service,
    get_subscribed_channels_service,
    toggle_subscription_service,
)
from services.history import get_watch_history_service
from services.users import toggle_upload_terms_service

router = APIRouter()


@router.get("/me/history")
async def get_watch_history(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await get_watch_history_service(user_id=auth.user_id, page=page, limit=limit, db=db)


@router.get("/me/subscriptions")
async def get_subscribed_channels(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await get_subscribed_channels_service(user_id=auth.user_id, page=page, limit=limit, db=db)


@router.post("/me/upload-terms")
async def toggle_upload_terms(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await toggle_upload_terms_service(auth.user_id, db)


@router.get("/channel/{handle}")
async def get_channel_profile(
    handle: str,
    viewer: Optional[AuthContext] = Depends(get_viewer_context),
    db: AsyncSession = Depends(get_db),
):
    return await get_channel_profile_service(handle, viewer_id_of(viewer), db)


@router.post("/{channel_id}/subscription")
async def toggle_subscription(
    channel_id: str,
    _rate_limit: None = Depends(rate_limit("subscription_toggle", limit=120, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await toggle_subscription_service(subscriber_id=auth.user_id, channel_id=channel_id, db=db)
