"""
Shared catalog queries: songs joined with their artist name and album title.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from tunehub.api.errors import NotFoundError
from tunehub.api.models import Album, Artist, Song


# PUBLIC_INTERFACE
def song_select(*extra_columns: Any) -> Select:
    """SELECT songs with artist_name and album_title (plus any extra columns)."""
    return (
        select(Song, Artist.artist_name, Album.title.label("album_title"), *extra_columns)
        .join(Artist, Song.artist_id == Artist.id)
        .outerjoin(Album, Song.album_id == Album.id)
    )


# PUBLIC_INTERFACE
def song_payload(song: Song, artist_name: Optional[str] = None, album_title: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """Serialize a song row into the response shape used across endpoints."""
    payload = {
        "id": song.id,
        "artist_id": song.artist_id,
        "album_id": song.album_id,
        "title": song.title,
        "duration": song.duration,
        "file_url": song.file_url,
        "cover_url": song.cover_url,
        "genre": song.genre,
        "plays": song.plays,
        "created_at": song.created_at,
        "artist_name": artist_name,
        "album_title": album_title,
    }
    payload.update(extra)
    return payload


# PUBLIC_INTERFACE
def row_payload(row: Any) -> Dict[str, Any]:
    """Serialize a row produced by `song_select(...)`; extra labelled columns are kept."""
    mapping = row._mapping
    extra = {key: mapping[key] for key in mapping.keys() if key not in ("Song", "artist_name", "album_title")}
    return song_payload(mapping["Song"], mapping["artist_name"], mapping["album_title"], **extra)


# PUBLIC_INTERFACE
def get_song_or_404(db: Session, song_id: uuid.UUID) -> Song:
    song = db.get(Song, song_id)
    if song is None:
        raise NotFoundError("Song not found")
    return song


# PUBLIC_INTERFACE
def load_song_payload(db: Session, song_id: uuid.UUID) -> Dict[str, Any]:
    """Load one song with its artist name and album title, or raise 404."""
    row = db.execute(song_select().where(Song.id == song_id)).first()
    if row is None:
        raise NotFoundError("Song not found")
    return row_payload(row)
