import pytest

from config import settings
from conftest import auth_header
from services.history import push_history_entry


def test_push_history_entry_moves_rewatched_video_to_front(monkeypatch):
    monkeypatch.setattr(settings, "WATCH_HISTORY_MAX_ENTRIES", 3)
    history = [
        {"video_id": "b", "watched_at": "2024-01-02T00:00:00+00:00"},
        {"video_id": "a", "watched_at": "2024-01-01T00:00:00+00:00"},
    ]

    history = push_history_entry(history, "a", "2024-01-03T00:00:00+00:00")
    assert history == [
        {"video_id": "a", "watched_at": "2024-01-03T00:00:00+00:00"},
        {"video_id": "b", "watched_at": "2024-01-02T00:00:00+00:00"},
    ]

    history = push_history_entry(history, "c", "2024-01-04T00:00:00+00:00")
    history = push_history_entry(history, "d", "2024-01-05T00:00:00+00:00")
    assert [entry["video_id"] for entry in history] == ["d", "c", "a"]


@pytest.mark.asyncio
async def test_views_are_recorded_once_per_video(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    first = await seed.video(alice, "first")
    second = await seed.video(alice, "second")

    for video in (first, second, first):
        resp = await integration_client.post(f"/videos/{video.id}/view", headers=auth_header(bob.id))
        assert resp.status_code == 200

    history = await integration_client.get("/users/me/history", headers=auth_header(bob.id))
    assert history.status_code == 200
    payload = history.json()
    assert payload["total_docs"] == 2
    assert [doc["title"] for doc in payload["docs"]] == ["first", "second"]
    assert payload["docs"][0]["views"] == 2
    assert payload["docs"][0]["owner"]["handle"] == "alice"
    assert "watched_at" in payload["docs"][0]


@pytest.mark.asyncio
async def test_history_pages_are_sliced_before_hidden_entries_are_dropped(integration_client, seed):
    alice = await seed.user("alice")
    videos = [await seed.video(alice, f"video {index}") for index in range(3)]
    hidden = await seed.video(alice, "hidden", is_public=False)
    history = [
        {"video_id": videos[2].id, "watched_at": "2024-01-05T00:00:00+00:00"},
        {"video_id": hidden.id, "watched_at": "2024-01-04T00:00:00+00:00"},
        {"video_id": videos[1].id, "watched_at": "2024-01-03T00:00:00+00:00"},
        {"video_id": videos[0].id, "watched_at": "2024-01-02T00:00:00+00:00"},
    ]
    bob = await seed.user("bob", watch_history=history)

    first_page = await integration_client.get(
        "/users/me/history",
        params={"page": 1, "limit": 2},
        headers=auth_header(bob.id),
    )
    payload = first_page.json()
    assert payload["total_docs"] == 4
    assert payload["total_pages"] == 2
    assert payload["has_next_page"] is True
    assert [doc["title"] for doc in payload["docs"]] == ["video 2"]

    second_page = await integration_client.get(
        "/users/me/history",
        params={"page": 2, "limit": 2},
        headers=auth_header(bob.id),
    )
    assert [doc["title"] for doc in second_page.json()["docs"]] == ["video 1", "video 0"]


@pytest.mark.asyncio
async def test_viewing_a_private_video_is_unauthorized(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    private = await seed.video(alice, "draft", is_public=False)

    resp = await integration_client.post(f"/videos/{private.id}/view", headers=auth_header(bob.id))
    assert resp.status_code == 403
    own = await integration_client.post(f"/videos/{private.id}/view", headers=auth_header(alice.id))
    assert own.status_code == 200
