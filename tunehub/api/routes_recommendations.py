"""
Recommendation endpoints:
- GET /recommendations (authenticated; genre-based picks from the caller's playlists)
- GET /recommendations/trending (most analytics plays in the trailing 7 days)
- GET /recommendations/similar/{song_id} (same artist scores 2, same genre 1)
- GET /recommendations/new-releases (songs added in the last 30 days)

These are read-only ranking queries over the catalog.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, case, false, func, or_, select
from sqlalchemy.orm import Session

from tunehub.api.catalog import get_song_or_404, row_payload, song_select
from tunehub.api.db import db_session_dep
from tunehub.api.models import Album, Analytics, Artist, Playlist, PlaylistSong, Song, User
from tunehub.api.pagination import check_limit
from tunehub.api.policy import require
from tunehub.api.schemas import SimilarSong, SongResponse, TrendingSong

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])

RECOMMENDATION_LIMIT = 20
FAVORITE_GENRES = 3
TRENDING_DAYS = 7
NEW_RELEASE_DAYS = 30


def _playlisted_song_ids(user_id: uuid.UUID):
    return (
        select(PlaylistSong.song_id)
        .join(Playlist, PlaylistSong.playlist_id == Playlist.id)
        .where(Playlist.user_id == user_id)
    )


# PUBLIC_INTERFACE
def favorite_genres(db: Session, user_id: uuid.UUID, top_n: int = FAVORITE_GENRES) -> List[str]:
    """Most frequent genres among songs in the user's playlists."""
    occurrences = func.count().label("occurrences")
    rows = db.execute(
        select(Song.genre, occurrences)
        .join(PlaylistSong, PlaylistSong.song_id == Song.id)
        .join(Playlist, PlaylistSong.playlist_id == Playlist.id)
        .where(Playlist.user_id == user_id, Song.genre.is_not(None))
        .group_by(Song.genre)
        .order_by(occurrences.desc(), Song.genre)
        .limit(top_n)
    ).all()
    return [genre for genre, _ in rows]


@router.get("", response_model=List[SongResponse], summary="Personal recommendations", operation_id="get_recommendations")
def get_recommendations(user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)):
    """
    Songs from the caller's top genres that are not already in any of their playlists.

    Callers without playlisted genres get the most played songs overall.
    """
    genres = favorite_genres(db, user.id)
    query = song_select()
    if genres:
        query = query.where(Song.genre.in_(genres), Song.id.not_in(_playlisted_song_ids(user.id)))

    rows = db.execute(query.order_by(Song.plays.desc(), Song.created_at.desc()).limit(RECOMMENDATION_LIMIT)).all()
    return [row_payload(r) for r in rows]


@router.get("/trending", response_model=List[TrendingSong], summary="Trending songs", operation_id="get_trending")
def get_trending(limit: int = Query(20), db: Session = Depends(db_session_dep)):
    since = datetime.now(timezone.utc).date() - timedelta(days=TRENDING_DAYS)
    recent_plays = func.coalesce(func.sum(Analytics.plays_count), 0).label("recent_plays")
    rows = db.execute(
        song_select(recent_plays)
        .outerjoin(Analytics, and_(Analytics.song_id == Song.id, Analytics.date >= since))
        .group_by(Song.id, Artist.artist_name, Album.title)
        .order_by(recent_plays.desc(), Song.plays.desc())
        .limit(check_limit(limit))
    ).all()
    return [row_payload(r) for r in rows]


@router.get(
    "/similar/{song_id}", response_model=List[SimilarSong], summary="Similar songs", operation_id="get_similar_songs"
)
def get_similar_songs(song_id: uuid.UUID, limit: int = Query(10), db: Session = Depends(db_session_dep)):
    """Songs by the same artist (score 2) or in the same genre (score 1), best score then most plays first."""
    song = get_song_or_404(db, song_id)

    same_artist = Song.artist_id == song.artist_id
    same_genre = Song.genre == song.genre if song.genre is not None else false()
    score = case((same_artist, 2), (same_genre, 1), else_=0).label("similarity_score")

    rows = db.execute(
        song_select(score)
        .where(Song.id != song.id, or_(same_artist, same_genre))
        .order_by(score.desc(), Song.plays.desc())
        .limit(check_limit(limit))
    ).all()
    return [row_payload(r) for r in rows]


@router.get(
    "/new-releases", response_model=List[SongResponse], summary="New releases", operation_id="get_new_releases"
)
def get_new_releases(limit: int = Query(20), db: Session = Depends(db_session_dep)):
    since = datetime.now(timezone.utc) - timedelta(days=NEW_RELEASE_DAYS)
    rows = db.execute(
        song_select().where(Song.created_at >= since).order_by(Song.created_at.desc()).limit(check_limit(limit))
    ).all()
    return [row_payload(r) for r in rows]
