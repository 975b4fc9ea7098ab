import csv
import io

from tunehub.api.exports import attachment_filename, build_m3u, build_stats_csv, round_minutes

from helpers import auth


def test_round_minutes_rounds_halves_up():
    assert round_minutes(None) == 0
    assert round_minutes(29) == 0
    assert round_minutes(30) == 1
    assert round_minutes(89) == 1
    assert round_minutes(90) == 2


def test_build_m3u_layout():
    body = build_m3u(
        "Road Trip",
        [
            {"duration": 215, "artist_name": "Band", "title": "Song A", "file_url": "http://h/a.mp3"},
            {"duration": 61, "artist_name": "Solo", "title": "Song B", "file_url": "http://h/b.mp3"},
        ],
    )
    assert body == (
        "#EXTM3U\n#PLAYLIST:Road Trip\n\n"
        "#EXTINF:215,Band - Song A\nhttp://h/a.mp3\n\n"
        "#EXTINF:61,Solo - Song B\nhttp://h/b.mp3\n\n"
    )


def test_build_stats_csv_quotes_text_and_defaults_genre():
    body = build_stats_csv(
        [{"title": 'Say "Hi"', "artist_name": "Band", "genre": None, "play_count": 2, "total_seconds": 150}]
    )
    lines = body.splitlines()
    assert lines[0] == "Title,Artist,Genre,Play Count,Total Minutes"
    assert list(csv.reader(io.StringIO(lines[1]))) == [['Say "Hi"', "Band", "N/A", "2", "3"]]


def test_attachment_filename_strips_unsafe_characters():
    assert attachment_filename('My "Mix"/2024', "m3u") == "My _Mix__2024.m3u"
    assert attachment_filename("???", "m3u") == "___.m3u"
    assert attachment_filename("   ", "csv") == "export.csv"


def test_playlist_m3u_follows_position_order(client, register, make_song):
    artist, _ = register(role="artist", username="band")
    first = make_song(artist, title="first", duration=111)
    second = make_song(artist, title="second", duration=222)
    token, _ = register()
    playlist_id = client.post("/playlists", json={"name": "Road Trip"}, headers=auth(token)).json()["id"]
    for song in (second, first):
        client.post(f"/playlists/{playlist_id}/songs", json={"song_id": song["id"]}, headers=auth(token))

    resp = client.get(f"/export/playlist/{playlist_id}/m3u", headers=auth(token))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("audio/x-mpegurl")
    assert 'filename="Road Trip.m3u"' in resp.headers["content-disposition"]

    extinf = [line for line in resp.text.splitlines() if line.startswith("#EXTINF")]
    assert extinf == ["#EXTINF:222,band - second", "#EXTINF:111,band - first"]


def test_playlist_m3u_is_hidden_from_other_users(client, register):
    owner, _ = register()
    other, _ = register()
    playlist_id = client.post("/playlists", json={"name": "Secret", "is_public": True}, headers=auth(owner)).json()["id"]
    resp = client.get(f"/export/playlist/{playlist_id}/m3u", headers=auth(other))
    assert resp.status_code == 404
    assert resp.json() == {"error": "Playlist not found"}


def test_stats_csv_for_caller(client, register, make_song):
    artist, _ = register(role="artist", username="band")
    song = make_song(artist, title="tune", genre="rock")
    token, _ = register()
    client.post(f"/history/{song['id']}", json={"duration_played": 100}, headers=auth(token))
    client.post(f"/history/{song['id']}", json={"duration_played": 50}, headers=auth(token))

    resp = client.get("/export/stats-csv", headers=auth(token))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows == [["Title", "Artist", "Genre", "Play Count", "Total Minutes"], ["tune", "band", "rock", "2", "3"]]


def test_user_data_export(client, register, make_song):
    artist, _ = register(role="artist", username="band")
    song = make_song(artist, title="tune")
    artist_id = client.get("/artist/profile", headers=auth(artist)).json()["id"]
    token, user = register()
    client.post("/playlists", json={"name": "Mine"}, headers=auth(token))
    client.post(f"/likes/{song['id']}", headers=auth(token))
    client.post(f"/history/{song['id']}", headers=auth(token))
    client.post(f"/artists/{artist_id}/follow", headers=auth(token))

    data = client.get("/export/user-data", headers=auth(token)).json()
    assert data["user"]["email"] == user["email"]
    assert "password_hash" not in data["user"]
    assert [p["name"] for p in data["playlists"]] == ["Mine"]
    assert [(s["title"], s["artist_name"]) for s in data["liked_songs"]] == [("tune", "band")]
    assert len(data["listening_history"]) == 1
    assert [f["artist_name"] for f in data["following"]] == ["band"]
    assert "export_date" in data


def test_artist_data_export(client, register, make_song):
    artist, _ = register(role="artist", username="band")
    song = make_song(artist, title="tune")
    client.post(f"/songs/{song['id']}/play")
    listener, _ = register()

    data = client.get("/export/artist-data", headers=auth(artist)).json()
    assert data["artist"]["artist_name"] == "band"
    assert [s["title"] for s in data["songs"]] == ["tune"]
    assert data["albums"] == []
    assert data["analytics"][0]["plays_count"] == 1
    assert data["follower_count"] == 0

    assert client.get("/export/artist-data", headers=auth(listener)).status_code == 403
