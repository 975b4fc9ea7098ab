from sqlalchemy import select

from tunehub.api.models import Artist, User
from tunehub.cli import build_parser, create_user, main


def test_create_user_with_artist_profile(database, capsys):
    assert create_user(database, "Band@Tunehub.dev", "secret1", "band", "artist", artist_name="The Band") == 0
    assert "created artist user" in capsys.readouterr().out

    with database.session() as db:
        user = db.execute(select(User).where(User.email == "band@tunehub.dev")).scalar_one()
        artist = db.execute(select(Artist).where(Artist.user_id == user.id)).scalar_one()
        assert artist.artist_name == "The Band"
        assert user.password_hash != "secret1"


def test_create_user_rejects_duplicate_email(database, capsys):
    assert create_user(database, "dup@tunehub.dev", "secret1", "dup", "user") == 0
    assert create_user(database, "dup@tunehub.dev", "secret1", "dup", "admin") == 1
    assert "already registered" in capsys.readouterr().out


def test_parser_defaults_role_to_user():
    args = build_parser().parse_args(["create-user", "--email", "a@b.com", "--password", "x", "--username", "abc"])
    assert args.role == "user"


def test_init_db_and_short_password(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    assert main(["init-db"]) == 0
    assert (tmp_path / "cli.db").exists()

    code = main(["create-user", "--email", "a@b.com", "--password", "abc", "--username", "abc"])
    assert code == 1
    assert "at least 6" in capsys.readouterr().out
