from datetime import datetime, timedelta, timezone
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config import settings
from database import Base, get_db
from main import app
from models.comment import Comment
from models.playlist import Playlist
from models.reaction import Reaction
from models.subscription import Subscription
from models.tweet import Tweet
from models.user import User
from models.video import Video
from routers import rate_limit
from services.session_token import SESSION_TOKEN_TYPE

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "vidnest_test.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def integration_client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


def mint_token(
    user_id: str,
    handle: str = None,
    expires_in: timedelta = timedelta(hours=1),
    token_type: str = SESSION_TOKEN_TYPE,
) -> str:
    """Sign a token the way the identity service does."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    if handle:
        claims["handle"] = handle
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_header(user_id: str) -> dict:
    return {"Authorization": f"Bearer {mint_token(user_id)}"}


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


class Seeder:
    """Writes fixtures straight through the ORM, one committed session per row."""

    def __init__(self, maker):
        self.maker = maker

    async def _add(self, instance):
        async with self.maker() as session:
            session.add(instance)
            await session.commit()
        return instance

    async def user(self, handle: str, **fields) -> User:
        values = {
            "id": str(uuid.uuid4()),
            "handle": handle,
            "email": f"{handle}@example.com",
            "display_name": handle.capitalize(),
            "password_hash": "hashed-secret",
            "refresh_token_hash": "refresh-fingerprint",
            "upload_terms_accepted": True,
        }
        values.update(fields)
        return await self._add(User(**values))

    async def video(self, owner: User, title: str, **fields) -> Video:
        values = {
            "id": str(uuid.uuid4()),
            "owner_id": owner.id,
            "title": title,
            "description": fields.pop("description", f"{title} description"),
            "video_url": f"https://cdn.example.com/{title.replace(' ', '-')}.mp4",
            "duration_s": 60,
        }
        values.update(fields)
        return await self._add(Video(**values))

    async def comment(self, owner: User, video: Video, content: str, parent: Comment = None, **fields) -> Comment:
        values = {
            "id": str(uuid.uuid4()),
            "owner_id": owner.id,
            "video_id": video.id,
            "parent_id": parent.id if parent else None,
            "content": content,
        }
        values.update(fields)
        return await self._add(Comment(**values))

    async def reaction(self, actor: User, target_kind: str, target_id: str, kind: str = "like", **fields) -> Reaction:
        values = {
            "id": str(uuid.uuid4()),
            "actor_id": actor.id,
            "target_kind": target_kind,
            "target_id": target_id,
            "kind": kind,
        }
        values.update(fields)
        return await self._add(Reaction(**values))

    async def subscription(self, subscriber: User, channel: User, **fields) -> Subscription:
        values = {"id": str(uuid.uuid4()), "subscriber_id": subscriber.id, "channel_id": channel.id}
        values.update(fields)
        return await self._add(Subscription(**values))

    async def playlist(self, owner: User, title: str, videos=(), **fields) -> Playlist:
        values = {
            "id": str(uuid.uuid4()),
            "owner_id": owner.id,
            "title": title,
            "visibility": "public",
            "video_ids": [video.id for video in videos],
        }
        values.update(fields)
        return await self._add(Playlist(**values))

    async def tweet(self, owner: User, content: str) -> Tweet:
        return await self._add(Tweet(id=str(uuid.uuid4()), owner_id=owner.id, content=content))


@pytest.fixture
def seed(session_maker):
    return Seeder(session_maker)
