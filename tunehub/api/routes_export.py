"""
Export endpoints (authenticated, read-only):
- GET /export/user-data (profile, playlists, likes, history, follows)
- GET /export/artist-data (artist role; profile, songs, albums, analytics, follower count)
- GET /export/playlist/{id}/m3u (owner)
- GET /export/stats-csv
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tunehub.api.catalog import song_payload
from tunehub.api.db import db_session_dep
from tunehub.api.errors import NotFoundError
from tunehub.api.exports import attachment_filename, build_m3u, build_stats_csv
from tunehub.api.models import Album, Analytics, Artist, Follow, Like, ListeningHistory, Playlist, Song, User
from tunehub.api.policy import require, require_artist_profile
from tunehub.api.routes_albums import album_payload
from tunehub.api.routes_follows import artist_payload
from tunehub.api.routes_playlists import get_playlist_or_404, playlist_tracks

router = APIRouter(prefix="/export", tags=["Export"])


def _playlist_payload(playlist: Playlist) -> dict:
    return {
        "id": playlist.id,
        "name": playlist.name,
        "is_public": playlist.is_public,
        "created_at": playlist.created_at,
    }


@router.get("/user-data", summary="Export all personal data", operation_id="export_user_data")
def export_user_data(user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)):
    playlists = db.execute(select(Playlist).where(Playlist.user_id == user.id).order_by(Playlist.created_at)).scalars()

    liked = db.execute(
        select(Song.title, Artist.artist_name, Like.created_at)
        .join(Song, Like.song_id == Song.id)
        .join(Artist, Song.artist_id == Artist.id)
        .where(Like.user_id == user.id)
        .order_by(Like.created_at.desc())
    ).all()

    history = db.execute(
        select(Song.title, Artist.artist_name, ListeningHistory.played_at, ListeningHistory.duration_played)
        .join(Song, ListeningHistory.song_id == Song.id)
        .join(Artist, Song.artist_id == Artist.id)
        .where(ListeningHistory.user_id == user.id)
        .order_by(ListeningHistory.played_at.desc())
    ).all()

    following = db.execute(
        select(Artist.artist_name, Follow.followed_at)
        .join(Follow, Follow.artist_id == Artist.id)
        .where(Follow.user_id == user.id)
        .order_by(Follow.followed_at.desc())
    ).all()

    data = {
        "user": {
            "id": user.id,
            "email": user.email,
            "username": user.username,
            "role": user.role,
            "created_at": user.created_at,
        },
        "playlists": [_playlist_payload(p) for p in playlists],
        "liked_songs": [dict(row._mapping) for row in liked],
        "listening_history": [dict(row._mapping) for row in history],
        "following": [dict(row._mapping) for row in following],
        "export_date": datetime.now(timezone.utc),
    }
    return JSONResponse(jsonable_encoder(data))


@router.get("/artist-data", summary="Export artist catalog and analytics", operation_id="export_artist_data")
def export_artist_data(user: User = Depends(require("artist:self")), db: Session = Depends(db_session_dep)):
    artist = require_artist_profile(db, user)

    songs = db.execute(select(Song).where(Song.artist_id == artist.id).order_by(Song.created_at)).scalars()
    albums = db.execute(select(Album).where(Album.artist_id == artist.id).order_by(Album.release_date)).scalars()
    analytics = db.execute(
        select(Song.title, Analytics.date, Analytics.plays_count)
        .join(Song, Analytics.song_id == Song.id)
        .where(Song.artist_id == artist.id)
        .order_by(Analytics.date.desc(), Song.title)
    ).all()
    follower_count = db.execute(select(func.count()).select_from(Follow).where(Follow.artist_id == artist.id)).scalar_one()

    data = {
        "artist": artist_payload(artist),
        "songs": [song_payload(s, artist.artist_name) for s in songs],
        "albums": [album_payload(a, artist.artist_name) for a in albums],
        "analytics": [dict(row._mapping) for row in analytics],
        "follower_count": follower_count,
        "export_date": datetime.now(timezone.utc),
    }
    return JSONResponse(jsonable_encoder(data))


@router.get("/playlist/{playlist_id}/m3u", summary="Export a playlist as M3U", operation_id="export_playlist_m3u")
def export_playlist_m3u(
    playlist_id: uuid.UUID, user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)
):
    playlist = get_playlist_or_404(db, playlist_id)
    # Other users' playlists are hidden, not forbidden.
    if playlist.user_id != user.id:
        raise NotFoundError("Playlist not found")

    body = build_m3u(playlist.name, playlist_tracks(db, playlist_id))
    filename = attachment_filename(playlist.name, "m3u")
    return Response(
        content=body,
        media_type="audio/x-mpegurl",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/stats-csv", summary="Export play statistics as CSV", operation_id="export_stats_csv")
def export_stats_csv(user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)):
    play_count = func.count(ListeningHistory.id).label("play_count")
    rows = db.execute(
        select(
            Song.title,
            Artist.artist_name,
            Song.genre,
            play_count,
            func.coalesce(func.sum(ListeningHistory.duration_played), 0).label("total_seconds"),
        )
        .join(Song, ListeningHistory.song_id == Song.id)
        .join(Artist, Song.artist_id == Artist.id)
        .where(ListeningHistory.user_id == user.id)
        .group_by(Song.id, Song.title, Artist.artist_name, Song.genre)
        .order_by(play_count.desc(), Song.title)
    ).all()

    return Response(
        content=build_stats_csv(row._mapping for row in rows),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="listening-stats.csv"'},
    )
