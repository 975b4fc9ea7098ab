import uuid

from jose import jwt

from tunehub.api.auth import create_access_token, decode_access_token
from tunehub.api.config import Settings

from helpers import auth


def test_register_returns_token_and_user(client):
    resp = client.post(
        "/auth/register",
        json={"email": "Ann@Tunehub.dev", "password": "secret1", "username": "ann"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "ann@tunehub.dev"
    assert body["user"]["role"] == "user"

    payload = jwt.decode(body["token"], "test-secret", algorithms=["HS256"])
    assert payload["sub"] == body["user"]["id"]
    assert payload["role"] == "user"
    assert payload["exp"] - payload["iat"] == 7 * 24 * 60 * 60


def test_register_twice_conflicts_and_login_needs_correct_password(client):
    data = {"email": "dup@tunehub.dev", "password": "secret1", "username": "dupe"}
    assert client.post("/auth/register", json=data).status_code == 201

    again = client.post("/auth/register", json=data)
    assert again.status_code == 409
    assert "error" in again.json()

    bad = client.post("/auth/login", json={"email": "dup@tunehub.dev", "password": "wrong!!"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid credentials"}

    good = client.post("/auth/login", json={"email": "dup@tunehub.dev", "password": "secret1"})
    assert good.status_code == 200
    assert good.json()["user"]["username"] == "dupe"


def test_login_unknown_email_is_indistinguishable(client):
    resp = client.post("/auth/login", json={"email": "nobody@tunehub.dev", "password": "secret1"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}


def test_register_validation_errors(client):
    cases = [
        {"email": "not-an-email", "password": "secret1", "username": "ann"},
        {"email": "a@tunehub.dev", "password": "short", "username": "ann"},
        {"email": "a@tunehub.dev", "password": "secret1", "username": "an"},
        {"email": "a@tunehub.dev", "password": "secret1", "username": "ann", "role": "admin"},
    ]
    for data in cases:
        resp = client.post("/auth/register", json=data)
        assert resp.status_code == 400, data
        assert isinstance(resp.json()["error"], str)


def test_artist_registration_creates_profile(client, register):
    token, user = register(role="artist", username="ann")
    resp = client.get("/artist/profile", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["artist_name"] == "ann"
    assert resp.json()["user_id"] == user["id"]
    assert resp.json()["verified"] is False


def test_protected_route_requires_token(client):
    resp = client.get("/playlists")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Not authenticated"}


def test_bad_signature_is_invalid_token(client, register):
    _, user = register()
    forged = create_access_token(
        Settings(jwt_secret="other-secret"), user_id=uuid.UUID(user["id"]), email=user["email"], role="user"
    )
    resp = client.get("/playlists", headers=auth(forged))
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid token"}


def test_expired_token_is_reported_distinctly(client, register):
    _, user = register()
    expired = create_access_token(
        Settings(jwt_secret="test-secret", jwt_expires_minutes=-5),
        user_id=uuid.UUID(user["id"]),
        email=user["email"],
        role="user",
    )
    resp = client.get("/playlists", headers=auth(expired))
    assert resp.status_code == 401
    assert resp.json() == {"error": "Token expired"}


def test_decode_round_trip_keeps_claims():
    settings = Settings(jwt_secret="s3cret")
    user_id = uuid.uuid4()
    token = create_access_token(settings, user_id=user_id, email="x@tunehub.dev", role="artist")
    payload = decode_access_token(settings, token)
    assert payload["sub"] == str(user_id)
    assert payload["email"] == "x@tunehub.dev"
    assert payload["role"] == "artist"


def test_role_gate_forbids_listener_from_creating_songs(client, register):
    token, _ = register(role="user")
    resp = client.post(
        "/songs", json={"title": "X", "duration": 120, "file_url": "http://h/x.mp3"}, headers=auth(token)
    )
    assert resp.status_code == 403
    assert resp.json() == {"error": "Insufficient permissions"}
