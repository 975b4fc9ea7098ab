from helpers import auth


def test_track_play_appends_history_without_touching_counter(client, register, make_song):
    artist, _ = register(role="artist")
    song = make_song(artist, duration=200)
    token, _ = register()

    for _ in range(2):
        resp = client.post(f"/history/{song['id']}", json={"duration_played": 90, "completed": False}, headers=auth(token))
        assert resp.status_code == 200

    history = client.get("/history", headers=auth(token)).json()
    assert history["pagination"]["total"] == 2
    assert history["items"][0]["title"] == song["title"]
    assert history["items"][0]["duration_played"] == 90

    assert client.get(f"/songs/{song['id']}").json()["plays"] == 0


def test_track_play_body_is_optional(client, register, make_song):
    artist, _ = register(role="artist")
    song = make_song(artist)
    token, _ = register()

    assert client.post(f"/history/{song['id']}", headers=auth(token)).status_code == 200
    entry = client.get("/history", headers=auth(token)).json()["items"][0]
    assert entry["duration_played"] == 0
    assert entry["completed"] is False


def test_recent_lists_distinct_songs(client, register, make_song):
    artist, _ = register(role="artist")
    a = make_song(artist, title="a")
    b = make_song(artist, title="b")
    token, _ = register()

    for song in (a, b, a):
        client.post(f"/history/{song['id']}", headers=auth(token))

    recent = client.get("/history/recent", headers=auth(token)).json()
    assert [s["title"] for s in recent] == ["a", "b"]


def test_top_songs_and_artists(client, register, make_song):
    first, _ = register(role="artist", username="first")
    second, _ = register(role="artist", username="second")
    hit = make_song(first, title="hit")
    deep_cut = make_song(first, title="deep cut")
    other = make_song(second, title="other")
    token, _ = register()

    for song in (hit, hit, hit, other, deep_cut):
        client.post(f"/history/{song['id']}", headers=auth(token))

    top = client.get("/history/top-songs", headers=auth(token)).json()
    assert top[0]["title"] == "hit"
    assert top[0]["play_count"] == 3

    artists = client.get("/history/top-artists", headers=auth(token)).json()
    assert artists[0]["artist_name"] == "first"
    assert artists[0]["play_count"] == 4
    assert artists[0]["unique_songs"] == 2
    assert artists[1]["artist_name"] == "second"


def test_stats_summarise_period(client, register, make_song):
    artist, _ = register(role="artist")
    rock = make_song(artist, title="r", genre="rock")
    jazz = make_song(artist, title="j", genre="jazz")
    token, _ = register()

    client.post(f"/history/{rock['id']}", json={"duration_played": 120}, headers=auth(token))
    client.post(f"/history/{rock['id']}", json={"duration_played": 60}, headers=auth(token))
    client.post(f"/history/{jazz['id']}", json={"duration_played": 30}, headers=auth(token))

    stats = client.get("/history/stats", headers=auth(token)).json()
    assert stats == {
        "total_plays": 3,
        "total_minutes": 4,
        "unique_songs": 2,
        "unique_artists": 1,
        "top_genre": "rock",
        "period_days": 30,
    }

    assert client.get("/history/stats", params={"period": 0}, headers=auth(token)).status_code == 400


def test_history_is_private(client, register, make_song):
    artist, _ = register(role="artist")
    song = make_song(artist)
    me, _ = register()
    other, _ = register()
    client.post(f"/history/{song['id']}", headers=auth(me))

    assert client.get("/history", headers=auth(other)).json()["pagination"]["total"] == 0
    assert client.get("/history").status_code == 401
