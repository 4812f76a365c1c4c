"""Search history router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from services.search import get_top_searches_service

router = APIRouter()


@router.get("/top")
async def get_top_searches(
    limit: Optional[int] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return {"searches": await get_top_searches_service(limit, db)}
