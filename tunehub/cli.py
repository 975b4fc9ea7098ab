"""
Operations CLI.

    tunehub init-db
    tunehub create-user --email a@b.c --password secret --username admin --role admin
    tunehub serve --host 0.0.0.0 --port 8000

Database settings come from the same environment variables as the API.
"""

import argparse
import sys

from sqlalchemy import select

from tunehub.api.auth import hash_password
from tunehub.api.config import Settings, configure_logging
from tunehub.api.db import Database
from tunehub.api.models import ROLE_ARTIST, ROLES, Artist, User


def init_db(database: Database) -> None:
    database.create_all()
    print("[DONE] tables created")


def create_user(database: Database, email, password, username, role, artist_name=None) -> int:
    """Create an account of any role (admins included). Returns a process exit code."""
    email = email.lower().strip()
    with database.session() as db:
        if db.execute(select(User.id).where(User.email == email)).scalar_one_or_none():
            print(f"[FAIL] email already registered: {email}")
            return 1

        user = User(email=email, password_hash=hash_password(password), username=username.strip(), role=role)
        db.add(user)
        db.flush()
        if role == ROLE_ARTIST:
            db.add(Artist(user_id=user.id, artist_name=(artist_name or username).strip()))
        user_id = user.id

    print(f"[DONE] created {role} user id={user_id} email={email}")
    return 0


def serve(host: str, port: int, reload: bool) -> None:
    import uvicorn

    uvicorn.run("tunehub.api.main:app", host=host, port=port, reload=reload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tunehub", description="TuneHub backend operations.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create missing database tables.")

    user_cmd = commands.add_parser("create-user", help="Create an account (any role).")
    user_cmd.add_argument("--email", required=True)
    user_cmd.add_argument("--password", required=True)
    user_cmd.add_argument("--username", required=True)
    user_cmd.add_argument("--role", choices=sorted(ROLES), default="user")
    user_cmd.add_argument("--artist-name", default=None, help="Artist display name (role=artist).")

    serve_cmd = commands.add_parser("serve", help="Run the API with uvicorn.")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.add_argument("--reload", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(Settings.from_env().log_level)

    if args.command == "serve":
        serve(args.host, args.port, args.reload)
        return 0

    database = Database()
    try:
        if args.command == "init-db":
            init_db(database)
            return 0
        if len(args.password) < 6:
            print("[FAIL] password must be at least 6 characters")
            return 1
        return create_user(database, args.email, args.password, args.username, args.role, args.artist_name)
    finally:
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
