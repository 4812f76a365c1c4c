"""Tweets: short text posts that can be reacted to."""

from __future__ import annotations

import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from services.errors import InvalidArgumentError, NotFoundError, UnauthorizedError
from services.keys import require_key
from services.store import EntityStore
from services.users import require_user
from services.views import And, Eq

logger = logging.getLogger(__name__)

TWEET_MAX_LENGTH = 280


async def create_tweet_service(*, user_id: str, content: str, db: AsyncSession) -> Dict[str, Any]:
    text = str(content or "").strip()
    if not text:
        raise InvalidArgumentError("Tweet content is required.")
    if len(text) > TWEET_MAX_LENGTH:
        raise InvalidArgumentError(f"Tweet content must be at most {TWEET_MAX_LENGTH} characters.")
    store = EntityStore(db)
    await require_user(store, user_id)
    tweet = await store.insert("tweets", {"owner_id": user_id, "content": text})
    await store.commit()
    return tweet


async def delete_tweet_service(*, user_id: str, tweet_id: str, db: AsyncSession) -> Dict[str, Any]:
    key = require_key(tweet_id, "tweet_id")
    store = EntityStore(db)
    tweet = await store.get("tweets", key)
    if tweet is None:
        raise NotFoundError("Tweet not found.")
    if tweet["owner_id"] != user_id:
        raise UnauthorizedError("Only the author can delete this tweet.")

    reactions_deleted = await store.delete_where("reactions", And(Eq("target_kind", "tweet"), Eq("target_id", key)))
    await store.delete("tweets", key)
    await store.commit()
    logger.info("tweet_deleted user=%s tweet=%s reactions=%s", user_id, key, reactions_deleted)
    return {"tweet_id": key, "deleted": True, "reactions_deleted": reactions_deleted}
