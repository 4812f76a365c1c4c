"""Reaction toggle and reacted-target listings."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from services.errors import ConflictError, InvalidArgumentError, NotFoundError
from services.keys import require_key
from services.store import EntityStore
from services.users import require_user
from services.views import And, Eq, PageRequest, PipelineExecutor
from services.views.compiler import reaction_list_view

logger = logging.getLogger(__name__)

TARGET_COLLECTIONS = {"video": "videos", "comment": "comments", "tweet": "tweets"}
REACTION_KINDS = ("like", "dislike")
DESIRED_STATES = REACTION_KINDS + ("remove",)


def _validate_target_kind(target_kind: str) -> str:
    normalized = str(target_kind or "").strip().lower()
    if normalized not in TARGET_COLLECTIONS:
        raise InvalidArgumentError(f"target_kind must be one of: {', '.join(TARGET_COLLECTIONS)}.")
    return normalized


def _validate_desired(desired: str) -> str:
    normalized = str(desired or "").strip().lower()
    if normalized not in DESIRED_STATES:
        raise InvalidArgumentError(f"desired must be one of: {', '.join(DESIRED_STATES)}.")
    return normalized


async def _find_reaction(store: EntityStore, actor_id: str, target_kind: str, target_id: str) -> Optional[Dict[str, Any]]:
    rows = await store.find(
        "reactions",
        And(Eq("actor_id", actor_id), Eq("target_kind", target_kind), Eq("target_id", target_id)),
        limit=1,
    )
    return rows[0] if rows else None


async def _set_kind(store: EntityStore, reaction: Dict[str, Any], desired: str) -> bool:
    """Update the kind in place; False when the row has been removed meanwhile."""
    if reaction["kind"] == desired:
        return True
    return await store.update("reactions", reaction["id"], {"kind": desired}) is not None


async def apply_reaction(
    store: EntityStore,
    *,
    actor_id: str,
    target_kind: str,
    target_id: str,
    desired: str,
) -> Dict[str, Any]:
    """Move the (actor, target) reaction to ``desired``.

    At most one reaction row exists per actor and target. Re-applying the
    current kind is a no-op; "remove" with nothing to remove is rejected.
    """
    existing = await _find_reaction(store, actor_id, target_kind, target_id)

    if desired == "remove":
        if existing is None:
            raise InvalidArgumentError("There is no reaction to remove.")
        await store.delete("reactions", existing["id"])
        await store.commit()
        return {"target_kind": target_kind, "target_id": target_id, "status": "removed", "kind": existing["kind"]}

    if existing is not None:
        if await _set_kind(store, existing, desired):
            await store.commit()
            return {"target_kind": target_kind, "target_id": target_id, "status": desired, "kind": desired}
        # Removed by a concurrent toggle; recreate it below.

    target = await store.get(TARGET_COLLECTIONS[target_kind], target_id)
    if target is None:
        raise NotFoundError(f"{target_kind.capitalize()} not found.")

    try:
        await store.insert(
            "reactions",
            {"actor_id": actor_id, "target_kind": target_kind, "target_id": target_id, "kind": desired},
        )
        await store.commit()
    except ConflictError:
        # A concurrent toggle inserted the row first; converge on it.
        existing = await _find_reaction(store, actor_id, target_kind, target_id)
        if existing is None or not await _set_kind(store, existing, desired):
            raise
        await store.commit()
    return {"target_kind": target_kind, "target_id": target_id, "status": desired, "kind": desired}


async def apply_reaction_service(
    *,
    actor_id: str,
    target_kind: str,
    target_id: str,
    desired: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    kind = _validate_target_kind(target_kind)
    state = _validate_desired(desired)
    key = require_key(target_id, "target_id")
    store = EntityStore(db)
    await require_user(store, actor_id)
    result = await apply_reaction(store, actor_id=actor_id, target_kind=kind, target_id=key, desired=state)
    logger.info(
        "reaction_applied actor=%s target_kind=%s target_id=%s status=%s",
        actor_id,
        kind,
        key,
        result["status"],
    )
    return result


async def list_reacted_targets_service(
    *,
    actor_id: str,
    target_kind: str = "video",
    kind: str = "like",
    page: Any = None,
    limit: Any = None,
    db: AsyncSession,
) -> Dict[str, Any]:
    """Targets the actor reacted to and can still see, newest reaction first."""
    resolved_kind = _validate_target_kind(target_kind)
    if kind not in REACTION_KINDS:
        raise InvalidArgumentError(f"kind must be one of: {', '.join(REACTION_KINDS)}.")
    request = PageRequest.build(page, limit)
    store = EntityStore(db)
    await require_user(store, actor_id)
    page_result = await PipelineExecutor(store).paginate(
        reaction_list_view(actor_id, resolved_kind, kind, request),
        request,
        actor_id,
    )
    return page_result.as_dict()
