"""Channel profiles and subscriptions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from services.errors import ConflictError, InvalidArgumentError, NotFoundError
from services.keys import require_key
from services.store import EntityStore
from services.users import require_user
from services.views import And, Eq, PageRequest, PipelineExecutor
from services.views.compiler import channel_profile_view, subscribed_channels_view

logger = logging.getLogger(__name__)


async def get_channel_profile_service(handle: str, viewer_id: Optional[str], db: AsyncSession) -> Dict[str, Any]:
    normalized = str(handle or "").strip().lower()
    if not normalized:
        raise InvalidArgumentError("Channel handle is required.")
    profile = await PipelineExecutor(EntityStore(db)).first(channel_profile_view(normalized), viewer_id)
    if profile is None:
        raise NotFoundError("Channel does not exist.")
    return profile


async def toggle_subscription_service(*, subscriber_id: str, channel_id: str, db: AsyncSession) -> Dict[str, Any]:
    """Subscribe to the channel, or unsubscribe when a subscription already exists."""
    channel_key = require_key(channel_id, "channel_id")
    if channel_key == subscriber_id and not settings.ALLOW_SELF_SUBSCRIPTION:
        raise InvalidArgumentError("You cannot subscribe to your own channel.")

    store = EntityStore(db)
    await require_user(store, subscriber_id)
    if await store.get("users", channel_key) is None:
        raise NotFoundError("Channel does not exist.")

    pair = And(Eq("subscriber_id", subscriber_id), Eq("channel_id", channel_key))
    existing = await store.find("subscriptions", pair, limit=1)
    if existing:
        await store.delete("subscriptions", existing[0]["id"])
        subscribed = False
    else:
        try:
            await store.insert("subscriptions", {"subscriber_id": subscriber_id, "channel_id": channel_key})
        except ConflictError:
            logger.info("subscription_race subscriber=%s channel=%s", subscriber_id, channel_key)
        subscribed = True
    await store.commit()

    subscriber_count = await store.count("subscriptions", Eq("channel_id", channel_key))
    logger.info("subscription_toggled subscriber=%s channel=%s subscribed=%s", subscriber_id, channel_key, subscribed)
    return {"channel_id": channel_key, "subscribed": subscribed, "subscriber_count": subscriber_count}


async def get_subscribed_channels_service(
    *,
    user_id: str,
    page: Any = None,
    limit: Any = None,
    db: AsyncSession,
) -> Dict[str, Any]:
    request = PageRequest.build(page, limit)
    store = EntityStore(db)
    await require_user(store, user_id)
    result = await PipelineExecutor(store).paginate(subscribed_channels_view(user_id, request), request, user_id)
    return result.as_dict()
