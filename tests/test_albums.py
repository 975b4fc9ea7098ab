from helpers import auth


def _create_album(client, token, title="Record", release_date="2024-05-01"):
    resp = client.post("/albums", json={"title": title, "release_date": release_date}, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["album"]


def test_create_and_get_album_with_tracks(client, register, make_song):
    token, _ = register(role="artist", username="band")
    album = _create_album(client, token)
    assert album["song_count"] == 0
    assert album["artist_name"] == "band"

    make_song(token, title="One", album_id=album["id"])
    make_song(token, title="Two", album_id=album["id"])
    make_song(token, title="Loose")

    detail = client.get(f"/albums/{album['id']}").json()
    assert detail["album"]["song_count"] == 2
    assert [s["title"] for s in detail["songs"]] == ["One", "Two"]
    assert all(s["album_title"] == "Record" for s in detail["songs"])


def test_list_albums_sorted_by_release_date(client, register):
    token, _ = register(role="artist")
    _create_album(client, token, title="Old", release_date="2001-01-01")
    _create_album(client, token, title="New", release_date="2023-01-01")

    body = client.get("/albums").json()
    assert [a["title"] for a in body["items"]] == ["New", "Old"]
    assert body["pagination"]["total"] == 2
    assert client.get("/albums", params={"sort": "plays"}).status_code == 400


def test_deleting_album_keeps_songs_with_null_album(client, register, make_song):
    token, _ = register(role="artist")
    album = _create_album(client, token)
    songs = [make_song(token, title=f"T{i}", album_id=album["id"]) for i in range(2)]

    assert client.delete(f"/albums/{album['id']}", headers=auth(token)).status_code == 200
    assert client.get(f"/albums/{album['id']}").status_code == 404

    for song in songs:
        resp = client.get(f"/songs/{song['id']}")
        assert resp.status_code == 200
        assert resp.json()["album_id"] is None
        assert resp.json()["album_title"] is None


def test_album_ownership_enforced(client, register):
    owner, _ = register(role="artist")
    other, _ = register(role="artist")
    listener, _ = register()
    album = _create_album(client, owner)

    assert client.put(f"/albums/{album['id']}", json={"title": "Mine now"}, headers=auth(other)).status_code == 403
    assert client.delete(f"/albums/{album['id']}", headers=auth(other)).status_code == 403
    assert client.post("/albums", json={"title": "Nope"}, headers=auth(listener)).status_code == 403

    resp = client.put(f"/albums/{album['id']}", json={"title": "Remaster"}, headers=auth(owner))
    assert resp.status_code == 200
    assert resp.json()["title"] == "Remaster"


def test_song_cannot_join_another_artists_album(client, register):
    owner, _ = register(role="artist")
    other, _ = register(role="artist")
    album = _create_album(client, owner)

    resp = client.post(
        "/songs",
        json={"title": "Sneaky", "duration": 90, "file_url": "http://h/s.mp3", "album_id": album["id"]},
        headers=auth(other),
    )
    assert resp.status_code == 400


def test_blank_album_title_is_rejected(client, register):
    token, _ = register(role="artist")
    resp = client.post("/albums", json={"title": "  "}, headers=auth(token))
    assert resp.status_code == 400
    assert "Title is required" in resp.json()["error"]

    album = _create_album(client, token)
    assert client.put(f"/albums/{album['id']}", json={"title": ""}, headers=auth(token)).status_code == 400
