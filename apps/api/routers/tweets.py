"""Tweet router."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import rate_limit
from services.tweets import create_tweet_service, delete_tweet_service

router = APIRouter()


class CreateTweetRequest(BaseModel):
    content: str


@router.post("")
async def create_tweet(
    request: CreateTweetRequest,
    _rate_limit: None = Depends(rate_limit("tweet_create", limit=120, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await create_tweet_service(user_id=auth.user_id, content=request.content, db=db)


@router.delete("/{tweet_id}")
async def delete_tweet(
    tweet_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return await delete_tweet_service(user_id=auth.user_id, tweet_id=tweet_id, db=db)
