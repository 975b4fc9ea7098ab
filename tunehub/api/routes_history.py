"""
Listening history endpoints (authenticated):
- POST /history/{song_id}
- GET /history, /history/recent, /history/top-songs, /history/top-artists, /history/stats
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tunehub.api.catalog import get_song_or_404, row_payload, song_select
from tunehub.api.db import db_session_dep
from tunehub.api.errors import ValidationError
from tunehub.api.exports import round_minutes
from tunehub.api.models import Album, Artist, ListeningHistory, Song, User
from tunehub.api.pagination import check_limit, page_params, paginated
from tunehub.api.policy import require
from tunehub.api.routes_follows import artist_payload
from tunehub.api.schemas import (
    HistoryEntry,
    ListeningStats,
    MessageResponse,
    Page,
    RecentSong,
    TopArtist,
    TopSong,
    TrackPlayRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/history", tags=["History"])


def _since(period_days: int) -> datetime:
    if period_days < 1:
        raise ValidationError("period must be at least 1 day")
    return datetime.now(timezone.utc) - timedelta(days=period_days)


@router.post("/{song_id}", response_model=MessageResponse, summary="Record a play event", operation_id="track_play")
def track_play(
    song_id: uuid.UUID,
    req: Optional[TrackPlayRequest] = None,
    user: User = Depends(require("authenticated")),
    db: Session = Depends(db_session_dep),
):
    """Append one history row. The song's play counter is handled by POST /songs/{id}/play."""
    req = req or TrackPlayRequest()
    get_song_or_404(db, song_id)
    db.add(
        ListeningHistory(
            user_id=user.id,
            song_id=song_id,
            duration_played=req.duration_played,
            completed=req.completed,
        )
    )
    db.commit()
    return {"message": "Play tracked successfully"}


@router.get("", response_model=Page[HistoryEntry], summary="Listening history", operation_id="get_history")
def get_history(
    page: int = Query(1),
    limit: int = Query(50),
    user: User = Depends(require("authenticated")),
    db: Session = Depends(db_session_dep),
):
    params = page_params(page, limit)
    rows = db.execute(
        select(ListeningHistory, Song.title, Song.cover_url, Song.duration, Artist.artist_name)
        .join(Song, ListeningHistory.song_id == Song.id)
        .join(Artist, Song.artist_id == Artist.id)
        .where(ListeningHistory.user_id == user.id)
        .order_by(ListeningHistory.played_at.desc(), ListeningHistory.id)
        .limit(params.limit)
        .offset(params.offset)
    ).all()
    total = db.execute(
        select(func.count(ListeningHistory.id)).where(ListeningHistory.user_id == user.id)
    ).scalar_one()

    items = [
        {
            "id": entry.id,
            "song_id": entry.song_id,
            "played_at": entry.played_at,
            "duration_played": entry.duration_played,
            "completed": entry.completed,
            "title": title,
            "cover_url": cover_url,
            "duration": duration,
            "artist_name": artist_name,
        }
        for entry, title, cover_url, duration, artist_name in rows
    ]
    return paginated(items, params, total)


@router.get("/recent", response_model=List[RecentSong], summary="Recently played songs", operation_id="get_recent")
def get_recently_played(
    limit: int = Query(20),
    user: User = Depends(require("authenticated")),
    db: Session = Depends(db_session_dep),
):
    """Distinct songs, most recently played first."""
    last_played = (
        select(ListeningHistory.song_id, func.max(ListeningHistory.played_at).label("played_at"))
        .where(ListeningHistory.user_id == user.id)
        .group_by(ListeningHistory.song_id)
        .subquery()
    )
    rows = db.execute(
        song_select(last_played.c.played_at)
        .join(last_played, last_played.c.song_id == Song.id)
        .order_by(last_played.c.played_at.desc())
        .limit(check_limit(limit))
    ).all()
    return [row_payload(r) for r in rows]


@router.get("/top-songs", response_model=List[TopSong], summary="Most played songs", operation_id="get_top_songs")
def get_top_songs(
    period: int = Query(30, description="Trailing period in days."),
    limit: int = Query(20),
    user: User = Depends(require("authenticated")),
    db: Session = Depends(db_session_dep),
):
    play_count = func.count(ListeningHistory.id).label("play_count")
    rows = db.execute(
        song_select(play_count)
        .join(ListeningHistory, ListeningHistory.song_id == Song.id)
        .where(ListeningHistory.user_id == user.id, ListeningHistory.played_at >= _since(period))
        .group_by(Song.id, Artist.artist_name, Album.title)
        .order_by(play_count.desc(), Song.plays.desc())
        .limit(check_limit(limit))
    ).all()
    return [row_payload(r) for r in rows]


@router.get("/top-artists", response_model=List[TopArtist], summary="Most played artists", operation_id="get_top_artists")
def get_top_artists(
    period: int = Query(30, description="Trailing period in days."),
    limit: int = Query(10),
    user: User = Depends(require("authenticated")),
    db: Session = Depends(db_session_dep),
):
    play_count = func.count(ListeningHistory.id).label("play_count")
    rows = db.execute(
        select(Artist, play_count, func.count(func.distinct(ListeningHistory.song_id)).label("unique_songs"))
        .join(Song, Song.artist_id == Artist.id)
        .join(ListeningHistory, ListeningHistory.song_id == Song.id)
        .where(ListeningHistory.user_id == user.id, ListeningHistory.played_at >= _since(period))
        .group_by(Artist.id)
        .order_by(play_count.desc())
        .limit(check_limit(limit))
    ).all()
    return [artist_payload(artist, play_count=count, unique_songs=unique) for artist, count, unique in rows]


@router.get("/stats", response_model=ListeningStats, summary="Listening statistics", operation_id="get_listening_stats")
def get_listening_stats(
    period: int = Query(30, description="Trailing period in days."),
    user: User = Depends(require("authenticated")),
    db: Session = Depends(db_session_dep),
):
    since = _since(period)
    in_period = (ListeningHistory.user_id == user.id, ListeningHistory.played_at >= since)

    total_plays, total_seconds, unique_songs, unique_artists = db.execute(
        select(
            func.count(ListeningHistory.id),
            func.coalesce(func.sum(ListeningHistory.duration_played), 0),
            func.count(func.distinct(ListeningHistory.song_id)),
            func.count(func.distinct(Song.artist_id)),
        )
        .join(Song, ListeningHistory.song_id == Song.id)
        .where(*in_period)
    ).one()

    genre_count = func.count(ListeningHistory.id).label("genre_count")
    top_genre = db.execute(
        select(Song.genre, genre_count)
        .join(ListeningHistory, ListeningHistory.song_id == Song.id)
        .where(*in_period, Song.genre.is_not(None))
        .group_by(Song.genre)
        .order_by(genre_count.desc(), Song.genre)
        .limit(1)
    ).first()

    return {
        "total_plays": total_plays,
        "total_minutes": round_minutes(total_seconds),
        "unique_songs": unique_songs,
        "unique_artists": unique_artists,
        "top_genre": top_genre[0] if top_genre else None,
        "period_days": period,
    }
