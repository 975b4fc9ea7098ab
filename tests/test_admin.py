from helpers import auth


def test_admin_routes_reject_other_roles(client, register):
    token, _ = register(role="artist")
    for path in ("/admin/users", "/admin/artists", "/admin/stats"):
        resp = client.get(path, headers=auth(token))
        assert resp.status_code == 403
        assert resp.json() == {"error": "Insufficient permissions"}


def test_list_users_and_artists(client, register, admin_token):
    register(role="user", username="listener")
    register(role="artist", username="singer")

    users = client.get("/admin/users", headers=auth(admin_token)).json()
    assert {u["username"] for u in users} == {"root", "listener", "singer"}
    assert all("password_hash" not in u for u in users)

    artists = client.get("/admin/artists", headers=auth(admin_token)).json()
    assert len(artists) == 1
    assert artists[0]["artist_name"] == "singer"
    assert artists[0]["username"] == "singer"
    assert artists[0]["email"].endswith("@tunehub.dev")


def test_verify_artist(client, register, admin_token):
    token, _ = register(role="artist")
    artist_id = client.get("/artist/profile", headers=auth(token)).json()["id"]

    resp = client.put(f"/admin/artists/{artist_id}/verify", json={"verified": True}, headers=auth(admin_token))
    assert resp.status_code == 200
    assert resp.json()["verified"] is True
    assert client.get("/artist/profile", headers=auth(token)).json()["verified"] is True

    missing = "00000000-0000-0000-0000-000000000000"
    assert (
        client.put(f"/admin/artists/{missing}/verify", json={"verified": True}, headers=auth(admin_token)).status_code
        == 404
    )


def test_platform_stats(client, register, make_song, admin_token):
    artist, _ = register(role="artist")
    song = make_song(artist)
    make_song(artist)
    register()
    for _ in range(2):
        client.post(f"/songs/{song['id']}/play")

    stats = client.get("/admin/stats", headers=auth(admin_token)).json()
    assert stats == {"users": 3, "artists": 1, "songs": 2, "totalPlays": 2}


def test_delete_user(client, register, admin_token):
    token, user = register()
    assert client.delete(f"/admin/users/{user['id']}", headers=auth(admin_token)).status_code == 200
    assert client.get("/users/me", headers=auth(token)).status_code == 401
    assert client.delete(f"/admin/users/{user['id']}", headers=auth(admin_token)).status_code == 404
