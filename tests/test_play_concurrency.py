from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from tunehub.api.db import Database
from tunehub.api.models import Analytics

PLAYS = 12


@pytest.fixture
def database(tmp_path):
    # A file-backed database gives every worker thread its own connection.
    db = Database(
        f"sqlite:///{tmp_path / 'tunehub.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_size=PLAYS,
    )
    db.create_all()
    yield db
    db.dispose()


def test_concurrent_plays_are_all_counted(client, database, register, make_song):
    token, _ = register(role="artist")
    song = make_song(token)

    def play(_):
        return client.post(f"/songs/{song['id']}/play").status_code

    with ThreadPoolExecutor(max_workers=PLAYS) as pool:
        statuses = list(pool.map(play, range(PLAYS)))

    assert statuses == [200] * PLAYS
    assert client.get(f"/songs/{song['id']}").json()["plays"] == PLAYS

    with database.session() as db:
        row = db.execute(select(Analytics)).scalar_one()
        assert row.date == datetime.now(timezone.utc).date()
        assert row.plays_count == PLAYS
