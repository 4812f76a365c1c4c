"""Account helpers shared by write services."""

from __future__ import annotations

import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from services.errors import UnauthorizedError
from services.store import EntityStore

logger = logging.getLogger(__name__)


async def require_user(store: EntityStore, user_id: str) -> Dict[str, Any]:
    """Load the acting user; a session for a deleted account is rejected."""
    user = await store.get("users", user_id) if user_id else None
    if user is None:
        raise UnauthorizedError("Session user no longer exists.")
    return user


async def toggle_upload_terms_service(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    store = EntityStore(db)
    user = await require_user(store, user_id)
    accepted = not bool(user.get("upload_terms_accepted"))
    updated = await store.update("users", user_id, {"upload_terms_accepted": accepted})
    await store.commit()
    logger.info("upload_terms_toggled user=%s accepted=%s", user_id, accepted)
    return {
        "id": updated["id"],
        "handle": updated["handle"],
        "display_name": updated["display_name"],
        "upload_terms_accepted": updated["upload_terms_accepted"],
    }
