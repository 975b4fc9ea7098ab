import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from tunehub.api.config import Settings
from tunehub.api.db import Database
from tunehub.api.main import create_app
from tunehub.cli import create_user

from helpers import auth


@pytest.fixture
def settings(tmp_path):
    return Settings(jwt_secret="test-secret", media_root=str(tmp_path / "media"), log_level="WARNING")


@pytest.fixture
def database():
    # One shared in-memory connection so every session sees the same tables.
    db = Database("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def client(settings, database):
    app = create_app(settings=settings, database=database)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    """Register an account and return (token, user summary)."""
    counter = {"n": 0}

    def _register(role="user", email=None, username=None, password="secret1"):
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@tunehub.dev"
        username = username or f"{role}{counter['n']}"
        resp = client.post(
            "/auth/register",
            json={"email": email, "password": password, "username": username, "role": role},
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return body["token"], body["user"]

    return _register


@pytest.fixture
def admin_token(client, database):
    assert create_user(database, "root@tunehub.dev", "rootpass", "root", "admin") == 0
    resp = client.post("/auth/login", json={"email": "root@tunehub.dev", "password": "rootpass"})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


@pytest.fixture
def make_song(client):
    """Create a song as the given artist and return its JSON."""

    def _make_song(token, title="Song", duration=120, genre=None, album_id=None):
        payload = {"title": title, "duration": duration, "file_url": f"http://h/{title}.mp3"}
        if genre is not None:
            payload["genre"] = genre
        if album_id is not None:
            payload["album_id"] = album_id
        resp = client.post("/songs", json=payload, headers=auth(token))
        assert resp.status_code == 201, resp.text
        return resp.json()["song"]

    return _make_song
