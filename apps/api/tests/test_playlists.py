import uuid

import pytest

from conftest import at, auth_header


@pytest.mark.asyncio
async def test_playlist_contents_keep_order_and_hide_invisible_videos(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    intro = await seed.video(alice, "intro")
    secret = await seed.video(alice, "secret", is_public=False)
    outro = await seed.video(bob, "outro")
    playlist = await seed.playlist(alice, "course", videos=[outro, secret, intro])

    as_bob = await integration_client.get(f"/playlists/{playlist.id}", headers=auth_header(bob.id))
    assert as_bob.status_code == 200
    doc = as_bob.json()["docs"][0]
    assert [video["title"] for video in doc["videos"]] == ["outro", "intro"]
    assert doc["total_videos"] == 2
    assert doc["owner"]["handle"] == "alice"
    assert doc["videos"][0]["owner"]["handle"] == "bob"

    as_alice = await integration_client.get(f"/playlists/{playlist.id}", headers=auth_header(alice.id))
    assert [video["title"] for video in as_alice.json()["docs"][0]["videos"]] == ["outro", "secret", "intro"]


@pytest.mark.asyncio
async def test_private_playlist_root_errors(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    private = await seed.playlist(alice, "mine", visibility="private")

    assert (await integration_client.get(f"/playlists/{private.id}", headers=auth_header(bob.id))).status_code == 403
    assert (await integration_client.get(f"/playlists/{uuid.uuid4()}")).status_code == 404
    assert (await integration_client.get("/playlists/12345")).status_code == 422


@pytest.mark.asyncio
async def test_owner_playlist_listing_visibility(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    await seed.playlist(alice, "public one", updated_at=at(1))
    await seed.playlist(alice, "private one", visibility="private", updated_at=at(2))

    own_all = await integration_client.get(f"/playlists/user/{alice.id}", headers=auth_header(alice.id))
    assert own_all.json()["total_docs"] == 2
    assert [doc["title"] for doc in own_all.json()["docs"]] == ["private one", "public one"]

    own_private = await integration_client.get(
        f"/playlists/user/{alice.id}",
        params={"visibility": "private"},
        headers=auth_header(alice.id),
    )
    assert [doc["title"] for doc in own_private.json()["docs"]] == ["private one"]

    other = await integration_client.get(
        f"/playlists/user/{alice.id}",
        params={"visibility": "private"},
        headers=auth_header(bob.id),
    )
    assert other.json()["total_docs"] == 1
    assert [doc["title"] for doc in other.json()["docs"]] == ["public one"]


@pytest.mark.asyncio
async def test_playlist_crud_and_options(integration_client, seed):
    alice = await seed.user("alice")
    video = await seed.video(alice, "clip")

    created = await integration_client.post(
        "/playlists",
        json={"title": "Favourites", "video_ids": [video.id, video.id]},
        headers=auth_header(alice.id),
    )
    assert created.status_code == 200
    playlist = created.json()
    assert playlist["visibility"] == "private"
    assert playlist["video_ids"] == [video.id]

    second = await integration_client.post("/playlists", json={"title": "Later"}, headers=auth_header(alice.id))
    options = await integration_client.get(f"/playlists/options/{video.id}", headers=auth_header(alice.id))
    assert options.status_code == 200
    assert options.json()["playlists"] == [
        {"id": playlist["id"], "title": "Favourites", "visibility": "private", "is_present": True},
        {"id": second.json()["id"], "title": "Later", "visibility": "private", "is_present": False},
    ]

    renamed = await integration_client.patch(
        f"/playlists/{playlist['id']}",
        json={"title": "Best", "visibility": "public"},
        headers=auth_header(alice.id),
    )
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Best"
    assert renamed.json()["visibility"] == "public"

    deleted = await integration_client.delete(f"/playlists/{playlist['id']}", headers=auth_header(alice.id))
    assert deleted.json() == {"playlist_id": playlist["id"], "deleted": True}
    assert (await integration_client.get(f"/playlists/{playlist['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_video_playlists_update_checks_every_playlist_first(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    video = await seed.video(alice, "clip")
    mine = await seed.playlist(alice, "mine")
    stale = await seed.playlist(alice, "stale", videos=[video])
    theirs = await seed.playlist(bob, "theirs")

    rejected = await integration_client.patch(
        f"/videos/{video.id}/playlists",
        json={"add_to": [mine.id, theirs.id]},
        headers=auth_header(alice.id),
    )
    assert rejected.status_code == 403
    untouched = await integration_client.get(f"/playlists/{mine.id}", headers=auth_header(alice.id))
    assert untouched.json()["docs"][0]["total_videos"] == 0

    applied = await integration_client.patch(
        f"/videos/{video.id}/playlists",
        json={"add_to": [mine.id], "remove_from": [stale.id]},
        headers=auth_header(alice.id),
    )
    assert applied.status_code == 200
    mine_doc = (await integration_client.get(f"/playlists/{mine.id}", headers=auth_header(alice.id))).json()["docs"][0]
    stale_doc = (await integration_client.get(f"/playlists/{stale.id}", headers=auth_header(alice.id))).json()["docs"][0]
    assert [item["id"] for item in mine_doc["videos"]] == [video.id]
    assert stale_doc["videos"] == []


@pytest.mark.asyncio
async def test_owner_listing_pages_add_up_to_total(integration_client, seed):
    alice = await seed.user("alice")
    bob = await seed.user("bob")
    for index in range(5):
        visibility = "private" if index % 2 else "public"
        await seed.playlist(alice, f"list {index}", visibility=visibility, updated_at=at(index))

    for viewer, expected in ((alice, ["list 4", "list 3", "list 2", "list 1", "list 0"]), (bob, ["list 4", "list 2", "list 0"])):
        seen = []
        page = 1
        while True:
            resp = await integration_client.get(
                f"/playlists/user/{alice.id}",
                params={"page": page, "limit": 2},
                headers=auth_header(viewer.id),
            )
            payload = resp.json()
            seen.extend(doc["title"] for doc in payload["docs"])
            if not payload["has_next_page"]:
                break
            page += 1
        assert seen == expected
        assert payload["total_docs"] == len(expected)
        assert payload["total_pages"] == (len(expected) + 1) // 2
