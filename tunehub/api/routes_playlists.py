"""
Playlist endpoints:
- GET /playlists (caller's playlists), POST /playlists
- PUT /playlists/{id}, DELETE /playlists/{id} (owner)
- GET /playlists/{id}/songs (ordered; private playlists only for their owner)
- POST /playlists/{id}/songs (owner; appends at max(position)+1)
- DELETE /playlists/{playlist_id}/songs/{song_id} (owner)
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from tunehub.api.auth import get_optional_user
from tunehub.api.catalog import get_song_or_404, row_payload, song_select
from tunehub.api.db import db_session_dep
from tunehub.api.errors import ConflictError, NotFoundError
from tunehub.api.models import Playlist, PlaylistSong, Song, User
from tunehub.api.policy import ensure_owner, require
from tunehub.api.schemas import (
    MessageResponse,
    PlaylistCreatedResponse,
    PlaylistCreateRequest,
    PlaylistResponse,
    PlaylistSongAdd,
    PlaylistTrack,
    PlaylistUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/playlists", tags=["Playlists"])


# PUBLIC_INTERFACE
def get_playlist_or_404(db: Session, playlist_id: uuid.UUID) -> Playlist:
    playlist = db.get(Playlist, playlist_id)
    if playlist is None:
        raise NotFoundError("Playlist not found")
    return playlist


def _owned_playlist(db: Session, playlist_id: uuid.UUID, user: User) -> Playlist:
    playlist = get_playlist_or_404(db, playlist_id)
    ensure_owner("playlists:manage", user, playlist.user_id, "Not authorized to modify this playlist")
    return playlist


# PUBLIC_INTERFACE
def playlist_tracks(db: Session, playlist_id: uuid.UUID) -> list:
    """Tracks of a playlist in ascending position order."""
    rows = db.execute(
        song_select(PlaylistSong.position)
        .join(PlaylistSong, PlaylistSong.song_id == Song.id)
        .where(PlaylistSong.playlist_id == playlist_id)
        .order_by(PlaylistSong.position)
    ).all()
    return [row_payload(r) for r in rows]


@router.get("", response_model=List[PlaylistResponse], summary="Caller's playlists", operation_id="list_playlists")
def list_playlists(user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)):
    return db.execute(
        select(Playlist).where(Playlist.user_id == user.id).order_by(Playlist.created_at, Playlist.id)
    ).scalars().all()


@router.post(
    "",
    response_model=PlaylistCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a playlist",
    operation_id="create_playlist",
)
def create_playlist(
    req: PlaylistCreateRequest,
    user: User = Depends(require("playlists:manage")),
    db: Session = Depends(db_session_dep),
):
    playlist = Playlist(user_id=user.id, name=req.name, is_public=req.is_public)
    db.add(playlist)
    db.commit()
    logger.info("playlist_created: playlist_id=%s user_id=%s", playlist.id, user.id)
    return {"id": playlist.id, "message": "Playlist created"}


@router.put("/{playlist_id}", response_model=PlaylistResponse, summary="Update a playlist", operation_id="update_playlist")
def update_playlist(
    playlist_id: uuid.UUID,
    req: PlaylistUpdateRequest,
    user: User = Depends(require("playlists:manage")),
    db: Session = Depends(db_session_dep),
):
    playlist = _owned_playlist(db, playlist_id, user)
    for field, value in req.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(playlist, field, value)
    db.commit()
    return playlist


@router.get(
    "/{playlist_id}/songs",
    response_model=List[PlaylistTrack],
    summary="Playlist tracks",
    description="Tracks in position order. Private playlists are only visible to their owner.",
    operation_id="get_playlist_songs",
)
def get_playlist_songs(
    playlist_id: uuid.UUID,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(db_session_dep),
):
    playlist = get_playlist_or_404(db, playlist_id)
    if not playlist.is_public and (user is None or user.id != playlist.user_id):
        raise NotFoundError("Playlist not found")
    return playlist_tracks(db, playlist_id)


@router.post(
    "/{playlist_id}/songs",
    response_model=MessageResponse,
    summary="Append a song",
    operation_id="add_song_to_playlist",
)
def add_song_to_playlist(
    playlist_id: uuid.UUID,
    req: PlaylistSongAdd,
    user: User = Depends(require("playlists:manage")),
    db: Session = Depends(db_session_dep),
):
    """Append a song at the end of the playlist (position = max + 1)."""
    _owned_playlist(db, playlist_id, user)
    get_song_or_404(db, req.song_id)

    exists = db.execute(
        select(PlaylistSong.song_id).where(PlaylistSong.playlist_id == playlist_id, PlaylistSong.song_id == req.song_id)
    ).first()
    if exists:
        raise ConflictError("Song already in playlist")

    max_pos = db.execute(
        select(func.coalesce(func.max(PlaylistSong.position), 0)).where(PlaylistSong.playlist_id == playlist_id)
    ).scalar_one()
    db.add(PlaylistSong(playlist_id=playlist_id, song_id=req.song_id, position=max_pos + 1))
    db.commit()
    logger.info("playlist_song_added: playlist_id=%s song_id=%s position=%s", playlist_id, req.song_id, max_pos + 1)
    return {"message": "Song added to playlist"}


@router.delete(
    "/{playlist_id}/songs/{song_id}",
    response_model=MessageResponse,
    summary="Remove a song",
    operation_id="remove_song_from_playlist",
)
def remove_song_from_playlist(
    playlist_id: uuid.UUID,
    song_id: uuid.UUID,
    user: User = Depends(require("playlists:manage")),
    db: Session = Depends(db_session_dep),
):
    _owned_playlist(db, playlist_id, user)
    db.execute(delete(PlaylistSong).where(PlaylistSong.playlist_id == playlist_id, PlaylistSong.song_id == song_id))
    db.commit()
    return {"message": "Song removed from playlist"}


@router.delete("/{playlist_id}", response_model=MessageResponse, summary="Delete a playlist", operation_id="delete_playlist")
def delete_playlist(
    playlist_id: uuid.UUID,
    user: User = Depends(require("playlists:manage")),
    db: Session = Depends(db_session_dep),
):
    playlist = _owned_playlist(db, playlist_id, user)
    db.delete(playlist)
    db.commit()
    logger.info("playlist_deleted: playlist_id=%s user_id=%s", playlist_id, user.id)
    return {"message": "Playlist deleted"}
