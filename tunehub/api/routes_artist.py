"""
Artist self-service endpoints (artist role, caller's own profile):
- GET /artist/profile, PUT /artist/profile
- GET /artist/songs, GET /artist/albums
- GET /artist/analytics
- GET /artist/followers
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tunehub.api.catalog import row_payload, song_select
from tunehub.api.db import db_session_dep
from tunehub.api.models import Album, Analytics, Follow, Song, User
from tunehub.api.policy import require, require_artist_profile
from tunehub.api.routes_albums import album_payload, album_summary_select
from tunehub.api.routes_follows import artist_payload
from tunehub.api.schemas import (
    AlbumResponse,
    ArtistAnalyticsResponse,
    ArtistProfileUpdate,
    ArtistResponse,
    FollowerCountResponse,
    SongResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artist", tags=["Artist"])

ANALYTICS_DAYS = 30


@router.get("/profile", response_model=ArtistResponse, summary="Own artist profile", operation_id="get_artist_profile")
def get_profile(user: User = Depends(require("artist:self")), db: Session = Depends(db_session_dep)):
    return artist_payload(require_artist_profile(db, user))


@router.put(
    "/profile", response_model=ArtistResponse, summary="Update own artist profile", operation_id="update_artist_profile"
)
def update_profile(
    req: ArtistProfileUpdate,
    user: User = Depends(require("artist:self")),
    db: Session = Depends(db_session_dep),
):
    artist = require_artist_profile(db, user)

    changes = req.model_dump(exclude_unset=True, exclude_none=True)
    if "avatar_url" in changes:
        changes["avatar_url"] = str(changes["avatar_url"])
    if "artist_name" in changes:
        changes["artist_name"] = changes["artist_name"].strip()
    for field, value in changes.items():
        setattr(artist, field, value)
    db.commit()
    logger.info("artist_profile_updated: artist_id=%s fields=%s", artist.id, ",".join(sorted(changes)))
    return artist_payload(artist)


@router.get("/songs", response_model=List[SongResponse], summary="Own songs", operation_id="get_artist_songs")
def get_songs(user: User = Depends(require("artist:self")), db: Session = Depends(db_session_dep)):
    artist = require_artist_profile(db, user)
    rows = db.execute(
        song_select().where(Song.artist_id == artist.id).order_by(Song.created_at.desc(), Song.id)
    ).all()
    return [row_payload(r) for r in rows]


@router.get("/albums", response_model=List[AlbumResponse], summary="Own albums", operation_id="get_artist_albums")
def get_albums(user: User = Depends(require("artist:self")), db: Session = Depends(db_session_dep)):
    artist = require_artist_profile(db, user)
    rows = db.execute(
        album_summary_select().where(Album.artist_id == artist.id).order_by(Album.release_date.desc(), Album.id)
    ).all()
    return [album_payload(*row) for row in rows]


@router.get(
    "/analytics", response_model=ArtistAnalyticsResponse, summary="Play analytics", operation_id="get_artist_analytics"
)
def get_analytics(user: User = Depends(require("artist:self")), db: Session = Depends(db_session_dep)):
    """
    Daily play totals across the artist's songs for the most recent 30 recorded
    dates (newest first), plus catalog-wide totals.
    """
    artist = require_artist_profile(db, user)

    total_plays = func.sum(Analytics.plays_count).label("total_plays")
    daily = db.execute(
        select(Analytics.date, total_plays)
        .join(Song, Analytics.song_id == Song.id)
        .where(Song.artist_id == artist.id)
        .group_by(Analytics.date)
        .order_by(Analytics.date.desc())
        .limit(ANALYTICS_DAYS)
    ).all()

    song_count, plays_sum, plays_avg = db.execute(
        select(
            func.count(Song.id),
            func.coalesce(func.sum(Song.plays), 0),
            func.coalesce(func.avg(Song.plays), 0),
        ).where(Song.artist_id == artist.id)
    ).one()

    return {
        "analytics": [{"date": day, "total_plays": int(plays or 0)} for day, plays in daily],
        "stats": {
            "total_songs": song_count,
            "total_plays": int(plays_sum),
            "avg_plays": round(float(plays_avg), 2),
        },
    }


@router.get(
    "/followers", response_model=FollowerCountResponse, summary="Follower count", operation_id="get_artist_followers"
)
def get_followers(user: User = Depends(require("artist:self")), db: Session = Depends(db_session_dep)):
    artist = require_artist_profile(db, user)
    count = db.execute(select(func.count()).select_from(Follow).where(Follow.artist_id == artist.id)).scalar_one()
    return {"follower_count": count}
