import math
import uuid

import pytest

from conftest import at, auth_header
from services import reactions as reaction_service
from services.errors import InvalidArgumentError, NotFoundError
from services.reactions import apply_reaction_service
from services.store import EntityStore
from services.views import Eq


async def _reaction_rows(db_session, target_id):
    return await EntityStore(db_session).find("reactions", Eq("target_id", target_id))


@pytest.mark.asyncio
async def test_repeated_like_keeps_a_single_reaction(db_session, seed):
    alice = await seed.user("alice")
    video = await seed.video(alice, "launch")
    bob = await seed.user("bob")

    for _ in range(3):
        result = await apply_reaction_service(
            actor_id=bob.id, target_kind="video", target_id=video.id, desired="like", db=db_session
        )
        assert result["status"] == "like"

    rows = await _reaction_rows(db_session, video.id)
    assert len(rows) == 1
    assert rows[0]["kind"] == "like"


@pytest.mark.asyncio
async def test_switching_kind_updates_in_place(db_session, seed):
    alice = await seed.user("alice")
    video = await seed.video(alice, "launch")

    await apply_reaction_service(actor_id=alice.id, target_kind="video", target_id=video.id, desired="like", db=db_session)
    first_rows = await _reaction_rows(db_session, video.id)
    result = await apply_reaction_service(
        actor_id=alice.id, target_kind="video", target_id=video.id, desired="dislike", db=db_session
    )

    rows = await _reaction_rows(db_session, video.id)
    assert result == {"target_kind": "video", "target_id": video.id, "status": "dislike", "kind": "dislike"}
    assert len(rows) == 1
    assert rows[0]["id"] == first_rows[0]["id"]
    assert rows[0]["kind"] == "dislike"


@pytest.mark.asyncio
async def test_like_then_remove_reports_removed(db_session, seed):
    alice = await seed.user("alice")
    tweet = await seed.tweet(alice, "hello")

    await apply_reaction_service(actor_id=alice.id, target_kind="tweet", target_id=tweet.id, desired="like", db=db_session)
    result = await apply_reaction_service(
        actor_id=alice.id, target_kind="tweet", target_id=tweet.id, desired="remove", db=db_session
    )

    assert result["status"] == "removed"
    assert result["kind"] == "like"
    assert await _reaction_rows(db_session, tweet.id) == []


@pytest.mark.asyncio
async def test_remove_without_reaction_is_invalid(db_session, seed):
    alice = await seed.user("alice")
    video = await seed.video(alice, "launch")

    with pytest.raises(InvalidArgumentError):
        await apply_reaction_service(
            actor_id=alice.id, target_kind="video", target_id=video.id, desired="remove", db=db_session
        )


@pytest.mark.asyncio
async def test_reaction_to_missing_target_is_not_found(db_session, seed):
    alice = await seed.user("alice")

    with pytest.raises(NotFoundError):
        await apply_reaction_service(
            actor_id=alice.id, target_kind="comment", target_id=str(uuid.uuid4()), desired="like", db=db_session
        )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "target_kind,target_id,desired",
    [("playlist", None, "like"), ("video", "not-a-key", "like"), ("video", None, "love")],
)
async def test_reaction_arguments_are_validated(db_session, seed, target_kind, target_id, desired):
    alice = await seed.user("alice")
    video = await seed.video(alice, "launch")

    with pytest.raises(InvalidArgumentError):
        await apply_reaction_service(
            actor_id=alice.id,
            target_kind=target_kind,
            target_id=target_id or video.id,
            desired=desired,
            db=db_session,
        )


@pytest.mark.asyncio
async def test_insert_conflict_converges_on_existing_row(db_session, seed, monkeypatch):
    alice = await seed.user("alice")
    video = await seed.video(alice, "launch")
    await seed.reaction(alice, "video", video.id, kind="like")

    real_find = reaction_service._find_reaction
    calls = {"count": 0}

    async def stale_first_read(*args, **kwargs):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return await real_find(*args, **kwargs)

    monkeypatch.setattr(reaction_service, "_find_reaction", stale_first_read)
    result = await apply_reaction_service(
        actor_id=alice.id, target_kind="video", target_id=video.id, desired="dislike", db=db_session
    )

    rows = await _reaction_rows(db_session, video.id)
    assert result["status"] == "dislike"
    assert len(rows) == 1
    assert rows[0]["kind"] == "dislike"


@pytest.mark.asyncio
async def test_reaction_endpoints_and_liked_list(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    older = await seed.video(alice, "older")
    newer = await seed.video(alice, "newer")
    hidden = await seed.video(alice, "hidden", is_public=False)
    await seed.reaction(bob, "video", older.id, created_at=at(1))
    await seed.reaction(bob, "video", hidden.id, created_at=at(2))
    await seed.reaction(bob, "video", newer.id, created_at=at(3))

    put_resp = await integration_client.put(
        f"/reactions/video/{older.id}",
        params={"desired": "dislike"},
        headers=auth_header(bob.id),
    )
    assert put_resp.status_code == 200
    assert put_resp.json()["status"] == "dislike"

    liked_resp = await integration_client.get("/reactions/mine", headers=auth_header(bob.id))
    assert liked_resp.status_code == 200
    payload = liked_resp.json()
    assert payload["total_docs"] == 1
    assert [doc["video"]["title"] for doc in payload["docs"]] == ["newer"]
    assert payload["docs"][0]["video"]["owner"]["handle"] == "alice"

    remove_resp = await integration_client.put(
        f"/reactions/video/{newer.id}",
        params={"desired": "remove"},
        headers=auth_header(alice.id),
    )
    assert remove_resp.status_code == 422

    anonymous = await integration_client.put(f"/reactions/video/{newer.id}", params={"desired": "like"})
    assert anonymous.status_code == 401


@pytest.mark.asyncio
async def test_concurrently_removed_row_is_recreated(db_session, seed, monkeypatch):
    alice = await seed.user("alice")
    video = await seed.video(alice, "launch")

    async def vanished_row(*args, **kwargs):
        return {"id": str(uuid.uuid4()), "kind": "like"}

    monkeypatch.setattr(reaction_service, "_find_reaction", vanished_row)
    result = await apply_reaction_service(
        actor_id=alice.id, target_kind="video", target_id=video.id, desired="dislike", db=db_session
    )

    rows = await _reaction_rows(db_session, video.id)
    assert result["status"] == "dislike"
    assert len(rows) == 1
    assert rows[0]["kind"] == "dislike"


async def _walk_pages(client, path, headers, limit, **params):
    docs, page = [], 1
    while True:
        resp = await client.get(path, params={"page": page, "limit": limit, **params}, headers=headers)
        assert resp.status_code == 200
        payload = resp.json()
        assert len(payload["docs"]) <= limit
        docs.extend(payload["docs"])
        if not payload["has_next_page"]:
            return docs, payload
        page += 1


@pytest.mark.asyncio
async def test_liked_video_pages_add_up_to_total(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    for index in range(7):
        video = await seed.video(alice, f"video {index}", is_public=index not in (1, 3), is_nsfw=index == 5)
        await seed.reaction(bob, "video", video.id, created_at=at(index))

    docs, last = await _walk_pages(integration_client, "/reactions/mine", auth_header(bob.id), limit=2)

    assert last["total_docs"] == 4
    assert last["total_pages"] == math.ceil(4 / 2)
    assert len(docs) == last["total_docs"]
    assert [doc["video"]["title"] for doc in docs] == ["video 6", "video 4", "video 2", "video 0"]

    own_docs, own_last = await _walk_pages(integration_client, "/reactions/mine", auth_header(alice.id), limit=2)
    assert own_docs == [] and own_last["total_docs"] == 0


@pytest.mark.asyncio
async def test_liked_comment_pages_skip_comments_on_hidden_videos(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    public = await seed.video(alice, "public")
    private = await seed.video(alice, "private", is_public=False)
    for index in range(3):
        visible_comment = await seed.comment(alice, public, f"visible {index}")
        hidden_comment = await seed.comment(alice, private, f"hidden {index}")
        await seed.reaction(bob, "comment", visible_comment.id, created_at=at(2 * index))
        await seed.reaction(bob, "comment", hidden_comment.id, created_at=at(2 * index + 1))

    docs, last = await _walk_pages(
        integration_client, "/reactions/mine", auth_header(bob.id), limit=2, target_kind="comment"
    )

    assert last["total_docs"] == 3
    assert last["total_pages"] == 2
    assert [doc["comment"]["content"] for doc in docs] == ["visible 2", "visible 1", "visible 0"]
