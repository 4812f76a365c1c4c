"""Reaction toggle router."""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import rate_limit
from services.reactions import apply_reaction_service, list_reacted_targets_service

router = APIRouter()


@router.get("/mine")
async def list_my_reactions(
    target_kind: str = "video",
    kind: Literal["like", "dislike"] = "like",
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await list_reacted_targets_service(
        actor_id=auth.user_id,
        target_kind=target_kind,
        kind=kind,
        page=page,
        limit=limit,
        db=db,
    )


@router.put("/{target_kind}/{target_id}")
async def apply_reaction(
    target_kind: str,
    target_id: str,
    desired: str = Query(...),
    _rate_limit: None = Depends(rate_limit("reaction_apply", limit=600, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await apply_reaction_service(
        actor_id=auth.user_id,
        target_kind=target_kind,
        target_id=target_id,
        desired=desired,
        db=db,
    )
