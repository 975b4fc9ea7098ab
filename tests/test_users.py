from helpers import auth


def test_get_and_update_me(client, register):
    token, user = register(username="before")
    me = client.get("/users/me", headers=auth(token)).json()
    assert me["id"] == user["id"]
    assert "password_hash" not in me

    resp = client.put("/users/me", json={"username": "after", "email": "New@Tunehub.dev"}, headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["username"] == "after"
    assert resp.json()["email"] == "new@tunehub.dev"
    assert resp.json()["role"] == user["role"]


def test_update_email_to_taken_address_conflicts(client, register):
    token, _ = register()
    _, other = register()
    resp = client.put("/users/me", json={"email": other["email"]}, headers=auth(token))
    assert resp.status_code == 409


def test_change_password(client, register):
    token, user = register(password="secret1")

    wrong = client.put(
        "/users/me/password", json={"current_password": "nope123", "new_password": "secret2"}, headers=auth(token)
    )
    assert wrong.status_code == 401

    ok = client.put(
        "/users/me/password", json={"current_password": "secret1", "new_password": "secret2"}, headers=auth(token)
    )
    assert ok.status_code == 200

    assert client.post("/auth/login", json={"email": user["email"], "password": "secret1"}).status_code == 401
    assert client.post("/auth/login", json={"email": user["email"], "password": "secret2"}).status_code == 200


def test_delete_me_removes_account_and_owned_rows(client, register, make_song):
    artist, _ = register(role="artist")
    song = make_song(artist)
    token, user = register()
    client.post("/playlists", json={"name": "Gone"}, headers=auth(token))
    client.post(f"/likes/{song['id']}", headers=auth(token))

    assert client.delete("/users/me", headers=auth(token)).status_code == 200
    assert client.post("/auth/login", json={"email": user["email"], "password": "secret1"}).status_code == 401
    assert client.get("/users/me", headers=auth(token)).status_code == 401


def test_deleting_artist_account_removes_catalog(client, register, make_song):
    artist, _ = register(role="artist")
    song = make_song(artist)

    assert client.delete("/users/me", headers=auth(artist)).status_code == 200
    assert client.get(f"/songs/{song['id']}").status_code == 404
    assert client.get("/songs").json()["pagination"]["total"] == 0
