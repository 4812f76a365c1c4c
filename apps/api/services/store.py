"""Entity store: collection-oriented CRUD over async SQLAlchemy.

Records leave the store as plain dicts keyed by column name, so the view engine
can join, derive and project them without touching ORM state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, inspect as sa_inspect, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.comment import Comment
from models.playlist import Playlist
from models.reaction import Reaction
from models.search_query import SearchQuery
from models.subscription import Subscription
from models.tweet import Tweet
from models.user import User
from models.video import Video
from services.errors import ConflictError, InternalError
from services.views.predicates import Predicate

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
SortSpec = Sequence[Tuple[str, int]]

COLLECTIONS: Dict[str, Any] = {
    "users": User,
    "videos": Video,
    "comments": Comment,
    "reactions": Reaction,
    "subscriptions": Subscription,
    "playlists": Playlist,
    "tweets": Tweet,
    "search_queries": SearchQuery,
}


def model_for(collection: str) -> Any:
    try:
        return COLLECTIONS[collection]
    except KeyError as exc:
        raise ValueError(f"Unknown collection {collection!r}") from exc


def to_record(instance: Any) -> Record:
    record: Record = {}
    for attr in sa_inspect(instance).mapper.column_attrs:
        value = getattr(instance, attr.key)
        record[attr.key] = list(value) if isinstance(value, list) else value
    return record


class EntityStore:
    """Single-session gateway to every collection.

    Mutations are flushed but not committed; callers commit once the logical
    operation is complete.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _run(self, operation: str, collection: str, awaitable: Any) -> Any:
        try:
            return await awaitable
        except IntegrityError as exc:
            await self.db.rollback()
            logger.info("entity_store_conflict op=%s collection=%s", operation, collection)
            raise ConflictError(f"{collection} write conflicts with an existing record.") from exc
        except SQLAlchemyError as exc:
            logger.exception("entity_store_failure op=%s collection=%s", operation, collection)
            raise InternalError("Entity store failure.") from exc

    async def get(self, collection: str, key: str) -> Optional[Record]:
        model = model_for(collection)
        instance = await self._run("get", collection, self.db.get(model, key, populate_existing=True))
        return to_record(instance) if instance is not None else None

    async def find(
        self,
        collection: str,
        predicate: Optional[Predicate] = None,
        sort: SortSpec = (),
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Record]:
        model = model_for(collection)
        statement = select(model).execution_options(populate_existing=True)
        if predicate is not None:
            statement = statement.where(predicate.to_clause(model))

        order_by = []
        for field, direction in sort:
            column = getattr(model, field)
            order_by.append(column.desc() if direction < 0 else column.asc())
        if "id" not in {field for field, _ in sort}:
            order_by.append(model.id.asc())
        statement = statement.order_by(*order_by)

        if skip:
            statement = statement.offset(skip)
        if limit is not None:
            statement = statement.limit(limit)

        result = await self._run("find", collection, self.db.execute(statement))
        return [to_record(instance) for instance in result.scalars().all()]

    async def count(self, collection: str, predicate: Optional[Predicate] = None) -> int:
        model = model_for(collection)
        statement = select(func.count()).select_from(model)
        if predicate is not None:
            statement = statement.where(predicate.to_clause(model))
        result = await self._run("count", collection, self.db.execute(statement))
        return int(result.scalar() or 0)

    async def insert(self, collection: str, values: Record) -> Record:
        model = model_for(collection)
        instance = model(**values)
        self.db.add(instance)
        await self._run("insert", collection, self.db.flush())
        return to_record(instance)

    async def update(self, collection: str, key: str, patch: Record) -> Optional[Record]:
        model = model_for(collection)
        statement = update(model).where(model.id == key).values(**patch)
        result = await self._run("update", collection, self.db.execute(statement))
        if not result.rowcount:
            return None
        return await self.get(collection, key)

    async def increment(self, collection: str, key: str, field: str, amount: int = 1) -> bool:
        model = model_for(collection)
        column = getattr(model, field)
        statement = update(model).where(model.id == key).values({field: column + amount})
        result = await self._run("increment", collection, self.db.execute(statement))
        return bool(result.rowcount)

    async def delete(self, collection: str, key: str) -> bool:
        model = model_for(collection)
        statement = delete(model).where(model.id == key)
        result = await self._run("delete", collection, self.db.execute(statement))
        return bool(result.rowcount)

    async def delete_where(self, collection: str, predicate: Predicate) -> int:
        model = model_for(collection)
        statement = delete(model).where(predicate.to_clause(model))
        result = await self._run("delete_where", collection, self.db.execute(statement))
        return int(result.rowcount or 0)

    async def commit(self) -> None:
        await self._run("commit", "*", self.db.commit())
