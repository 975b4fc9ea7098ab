"""
Album endpoints:
- GET /albums, GET /albums/{id} (public)
- POST /albums, PUT /albums/{id}, DELETE /albums/{id} (owning artist)
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from tunehub.api.catalog import row_payload, song_select
from tunehub.api.db import db_session_dep
from tunehub.api.errors import NotFoundError
from tunehub.api.models import Album, Artist, Song, User
from tunehub.api.pagination import order_by_clause, page_params, paginated
from tunehub.api.policy import ensure_owner, require, require_artist_profile
from tunehub.api.schemas import (
    AlbumCreatedResponse,
    AlbumCreateRequest,
    AlbumDetailResponse,
    AlbumResponse,
    AlbumUpdateRequest,
    MessageResponse,
    Page,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/albums", tags=["Albums"])

ALBUM_SORT_COLUMNS = {
    "release_date": Album.release_date,
    "title": Album.title,
    "created_at": Album.created_at,
}


# PUBLIC_INTERFACE
def album_summary_select():
    """SELECT albums with artist name, song count and total plays."""
    return (
        select(
            Album,
            Artist.artist_name,
            func.count(Song.id).label("song_count"),
            func.coalesce(func.sum(Song.plays), 0).label("total_plays"),
        )
        .join(Artist, Album.artist_id == Artist.id)
        .outerjoin(Song, Song.album_id == Album.id)
        .group_by(Album.id, Artist.artist_name)
    )


# PUBLIC_INTERFACE
def album_payload(album: Album, artist_name=None, song_count=None, total_plays=None) -> dict:
    return {
        "id": album.id,
        "artist_id": album.artist_id,
        "title": album.title,
        "cover_url": album.cover_url,
        "release_date": album.release_date,
        "created_at": album.created_at,
        "artist_name": artist_name,
        "song_count": song_count,
        "total_plays": total_plays,
    }


def _owned_album(db: Session, album_id: uuid.UUID, user: User, policy_name: str, action: str) -> Album:
    album = db.get(Album, album_id)
    if album is None:
        raise NotFoundError("Album not found")
    owner = db.execute(select(Artist.user_id).where(Artist.id == album.artist_id)).scalar_one_or_none()
    ensure_owner(policy_name, user, owner, f"Not authorized to {action} this album")
    return album


@router.get("", response_model=Page[AlbumResponse], summary="List albums", operation_id="list_albums")
def list_albums(
    page: int = Query(1),
    limit: int = Query(20),
    sort: str = Query("release_date"),
    order: str = Query("desc"),
    db: Session = Depends(db_session_dep),
):
    params = page_params(page, limit)
    order_clause = order_by_clause(sort, order, ALBUM_SORT_COLUMNS)

    rows = db.execute(
        album_summary_select().order_by(order_clause, Album.id).limit(params.limit).offset(params.offset)
    ).all()
    total = db.execute(select(func.count(Album.id))).scalar_one()
    return paginated([album_payload(*row) for row in rows], params, total)


@router.get("/{album_id}", response_model=AlbumDetailResponse, summary="Album detail", operation_id="get_album")
def get_album(album_id: uuid.UUID, db: Session = Depends(db_session_dep)):
    """Album with its track list (oldest song first)."""
    row = db.execute(album_summary_select().where(Album.id == album_id)).first()
    if row is None:
        raise NotFoundError("Album not found")

    songs = db.execute(song_select().where(Song.album_id == album_id).order_by(Song.created_at, Song.id)).all()
    return {"album": album_payload(*row), "songs": [row_payload(s) for s in songs]}


@router.post(
    "",
    response_model=AlbumCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an album",
    operation_id="create_album",
)
def create_album(
    req: AlbumCreateRequest,
    user: User = Depends(require("albums:create")),
    db: Session = Depends(db_session_dep),
):
    artist = require_artist_profile(db, user)
    album = Album(
        artist_id=artist.id,
        title=req.title.strip(),
        cover_url=str(req.cover_url) if req.cover_url else None,
        release_date=req.release_date or datetime.now(timezone.utc).date(),
    )
    db.add(album)
    db.commit()
    logger.info("album_created: album_id=%s artist_id=%s", album.id, artist.id)
    return {
        "message": "Album created successfully",
        "album": album_payload(album, artist.artist_name, 0, 0),
    }


@router.put("/{album_id}", response_model=AlbumResponse, summary="Update an album", operation_id="update_album")
def update_album(
    album_id: uuid.UUID,
    req: AlbumUpdateRequest,
    user: User = Depends(require("albums:update")),
    db: Session = Depends(db_session_dep),
):
    album = _owned_album(db, album_id, user, "albums:update", "update")

    changes = req.model_dump(exclude_unset=True, exclude_none=True)
    if "cover_url" in changes:
        changes["cover_url"] = str(changes["cover_url"])
    for field, value in changes.items():
        setattr(album, field, value)
    db.commit()

    row = db.execute(album_summary_select().where(Album.id == album_id)).one()
    return album_payload(*row)


@router.delete("/{album_id}", response_model=MessageResponse, summary="Delete an album", operation_id="delete_album")
def delete_album(
    album_id: uuid.UUID,
    user: User = Depends(require("albums:delete")),
    db: Session = Depends(db_session_dep),
):
    """Delete an album; its songs stay in the catalog with album_id = NULL."""
    album = _owned_album(db, album_id, user, "albums:delete", "delete")

    db.execute(update(Song).where(Song.album_id == album_id).values(album_id=None))
    db.delete(album)
    db.commit()
    logger.info("album_deleted: album_id=%s by=%s", album_id, user.id)
    return {"message": "Album deleted successfully"}
