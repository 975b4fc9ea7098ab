from sqlalchemy import func, select

from tunehub.api.models import Follow, Like

from helpers import auth


def _count(database, model):
    with database.session() as db:
        return db.execute(select(func.count()).select_from(model)).scalar_one()


def test_like_is_idempotent(client, database, register, make_song):
    artist, _ = register(role="artist")
    song = make_song(artist)
    token, _ = register()

    assert client.post(f"/likes/{song['id']}", headers=auth(token)).status_code == 200
    assert client.post(f"/likes/{song['id']}", headers=auth(token)).status_code == 200
    assert _count(database, Like) == 1

    assert client.delete(f"/likes/{song['id']}", headers=auth(token)).status_code == 200
    assert client.delete(f"/likes/{song['id']}", headers=auth(token)).status_code == 200
    assert _count(database, Like) == 0

    client.post(f"/likes/{song['id']}", headers=auth(token))
    assert _count(database, Like) == 1

    liked = client.get("/likes", headers=auth(token)).json()
    assert [s["id"] for s in liked] == [song["id"]]
    assert "liked_at" in liked[0]


def test_like_unknown_song_is_404(client, register):
    token, _ = register()
    resp = client.post("/likes/00000000-0000-0000-0000-000000000000", headers=auth(token))
    assert resp.status_code == 404


def test_follow_unfollow_round_trip(client, database, register, make_song):
    artist_token, _ = register(role="artist", username="idol")
    make_song(artist_token)
    artist_id = client.get("/artist/profile", headers=auth(artist_token)).json()["id"]
    fan, _ = register()

    follow_url = f"/artists/{artist_id}/follow"
    assert client.post(follow_url, headers=auth(fan)).status_code == 200
    assert client.post(follow_url, headers=auth(fan)).status_code == 200
    assert _count(database, Follow) == 1
    assert client.get(f"/artists/{artist_id}/following", headers=auth(fan)).json() == {"following": True}

    following = client.get("/following", headers=auth(fan)).json()
    assert len(following) == 1
    assert following[0]["artist_name"] == "idol"
    assert following[0]["song_count"] == 1

    followers = client.get("/artist/followers", headers=auth(artist_token)).json()
    assert followers == {"follower_count": 1}

    assert client.delete(follow_url, headers=auth(fan)).status_code == 200
    assert client.get(f"/artists/{artist_id}/following", headers=auth(fan)).json() == {"following": False}
    assert _count(database, Follow) == 0


def test_follow_unknown_artist_is_404(client, register):
    token, _ = register()
    resp = client.post("/artists/00000000-0000-0000-0000-000000000000/follow", headers=auth(token))
    assert resp.status_code == 404
    assert resp.json() == {"error": "Artist not found"}
