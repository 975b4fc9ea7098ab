"""
Song endpoints:
- GET /songs (public; paginated, sortable, filterable by genre and free-text search)
- GET /songs/{id} (public)
- POST /songs (artist|admin)
- PUT /songs/{id}, DELETE /songs/{id} (owning artist or admin)
- POST /songs/{id}/play (public; play counter + daily analytics)
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from tunehub.api.catalog import get_song_or_404, load_song_payload, row_payload, song_select
from tunehub.api.db import db_session_dep, dialect_insert
from tunehub.api.errors import AuthorizationError, NotFoundError, ValidationError
from tunehub.api.models import ROLE_ADMIN, Album, Analytics, Artist, Song, User
from tunehub.api.pagination import order_by_clause, page_params, paginated
from tunehub.api.policy import artist_for_user, ensure_owner, require
from tunehub.api.schemas import (
    MessageResponse,
    Page,
    SongCreatedResponse,
    SongCreateRequest,
    SongResponse,
    SongUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Songs"])

SONG_SORT_COLUMNS = {
    "created_at": Song.created_at,
    "title": Song.title,
    "plays": Song.plays,
    "duration": Song.duration,
    "artist_name": Artist.artist_name,
}


def _owner_user_id(db: Session, song: Song) -> Optional[uuid.UUID]:
    return db.execute(select(Artist.user_id).where(Artist.id == song.artist_id)).scalar_one_or_none()


def _check_album(db: Session, album_id: Optional[uuid.UUID], artist_id: uuid.UUID) -> None:
    if album_id is None:
        return
    album = db.get(Album, album_id)
    if album is None or album.artist_id != artist_id:
        raise ValidationError("Album does not exist for this artist")


@router.get(
    "/songs",
    response_model=Page[SongResponse],
    summary="List songs",
    description="Paginated song list with genre filter and title/artist search.",
    operation_id="list_songs",
)
def list_songs(
    page: int = Query(1),
    limit: int = Query(50),
    sort: str = Query("created_at"),
    order: str = Query("desc"),
    genre: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(db_session_dep),
):
    """List songs (public)."""
    params = page_params(page, limit)
    order_clause = order_by_clause(sort, order, SONG_SORT_COLUMNS)

    filters = []
    if genre:
        filters.append(Song.genre == genre)
    if search:
        # Search text is literal; LIKE wildcards in it are escaped.
        escaped = search.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")
        pattern = f"%{escaped}%"
        filters.append(
            or_(Song.title.ilike(pattern, escape="\\"), Artist.artist_name.ilike(pattern, escape="\\"))
        )

    query = song_select().where(*filters).order_by(order_clause, Song.id).limit(params.limit).offset(params.offset)
    rows = db.execute(query).all()

    count_query = select(func.count(Song.id)).join(Artist, Song.artist_id == Artist.id).where(*filters)
    total = db.execute(count_query).scalar_one()

    return paginated([row_payload(r) for r in rows], params, total)


@router.get("/songs/{song_id}", response_model=SongResponse, summary="Get a song", operation_id="get_song")
def get_song(song_id: uuid.UUID, db: Session = Depends(db_session_dep)):
    return load_song_payload(db, song_id)


@router.post(
    "/songs",
    response_model=SongCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a song",
    operation_id="create_song",
)
def create_song(
    req: SongCreateRequest,
    user: User = Depends(require("songs:create")),
    db: Session = Depends(db_session_dep),
):
    """Create a song owned by the caller's artist profile (admins may name `artist_id`)."""
    artist = artist_for_user(db, user)
    if user.role == ROLE_ADMIN and req.artist_id is not None:
        artist = db.get(Artist, req.artist_id)
        if artist is None:
            raise NotFoundError("Artist not found")
    if artist is None:
        raise AuthorizationError("Not an artist")

    _check_album(db, req.album_id, artist.id)

    song = Song(
        artist_id=artist.id,
        album_id=req.album_id,
        title=req.title.strip(),
        duration=req.duration,
        file_url=str(req.file_url),
        cover_url=str(req.cover_url) if req.cover_url else None,
        genre=req.genre,
        plays=0,
        created_at=datetime.now(timezone.utc),
    )
    db.add(song)
    db.commit()
    logger.info("song_created: song_id=%s artist_id=%s", song.id, artist.id)

    return {"id": song.id, "message": "Song created successfully", "song": load_song_payload(db, song.id)}


@router.put("/songs/{song_id}", response_model=SongResponse, summary="Update a song", operation_id="update_song")
def update_song(
    song_id: uuid.UUID,
    req: SongUpdateRequest,
    user: User = Depends(require("songs:update")),
    db: Session = Depends(db_session_dep),
):
    """Update song metadata. Only admins may correct the play counter."""
    song = get_song_or_404(db, song_id)
    ensure_owner("songs:update", user, _owner_user_id(db, song), "Not authorized to update this song")

    changes = req.model_dump(exclude_unset=True)
    if "plays" in changes:
        if user.role != ROLE_ADMIN:
            raise AuthorizationError("Only admins may correct play counts")
        if changes["plays"] is None:
            raise ValidationError("plays must be a non-negative integer")
    if "title" in changes and changes["title"] is None:
        raise ValidationError("title cannot be empty")
    if "album_id" in changes:
        _check_album(db, changes["album_id"], song.artist_id)
    if changes.get("cover_url") is not None:
        changes["cover_url"] = str(changes["cover_url"])

    for field, value in changes.items():
        setattr(song, field, value)
    db.commit()
    logger.info("song_updated: song_id=%s by=%s fields=%s", song.id, user.id, sorted(changes))
    return load_song_payload(db, song.id)


@router.delete("/songs/{song_id}", response_model=MessageResponse, summary="Delete a song", operation_id="delete_song")
def delete_song(
    song_id: uuid.UUID,
    user: User = Depends(require("songs:delete")),
    db: Session = Depends(db_session_dep),
):
    song = get_song_or_404(db, song_id)
    ensure_owner("songs:delete", user, _owner_user_id(db, song), "Not authorized to delete this song")

    db.delete(song)
    db.commit()
    logger.info("song_deleted: song_id=%s by=%s", song_id, user.id)
    return {"message": "Song deleted successfully"}


# PUBLIC_INTERFACE
def increment_plays(db: Session, song_id: uuid.UUID) -> None:
    """
    Count one play: bump songs.plays and upsert today's analytics row.

    Both writes are single atomic statements so concurrent listeners never lose an
    increment; they share the caller's transaction.
    """
    result = db.execute(update(Song).where(Song.id == song_id).values(plays=Song.plays + 1))
    if result.rowcount == 0:
        raise NotFoundError("Song not found")

    today = datetime.now(timezone.utc).date()
    stmt = dialect_insert(db, Analytics).values(song_id=song_id, date=today, plays_count=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Analytics.song_id, Analytics.date],
        set_={"plays_count": Analytics.plays_count + 1},
    )
    db.execute(stmt)


@router.post(
    "/songs/{song_id}/play",
    response_model=MessageResponse,
    summary="Count a play",
    description="Increments the song's play counter and today's analytics row.",
    operation_id="play_song",
)
def play_song(song_id: uuid.UUID, db: Session = Depends(db_session_dep)):
    increment_plays(db, song_id)
    db.commit()
    return {"message": "Play counted"}
