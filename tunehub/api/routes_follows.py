"""
Follow endpoints (authenticated):
- POST /artists/{artist_id}/follow (idempotent)
- DELETE /artists/{artist_id}/follow
- GET /artists/{artist_id}/following
- GET /following
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from tunehub.api.db import db_session_dep, dialect_insert
from tunehub.api.errors import NotFoundError
from tunehub.api.models import Artist, Follow, Song, User
from tunehub.api.policy import require
from tunehub.api.schemas import FollowedArtist, FollowingResponse, MessageResponse

router = APIRouter(tags=["Follows"])


# PUBLIC_INTERFACE
def artist_payload(artist: Artist, **extra) -> dict:
    payload = {
        "id": artist.id,
        "user_id": artist.user_id,
        "artist_name": artist.artist_name,
        "bio": artist.bio,
        "avatar_url": artist.avatar_url,
        "verified": artist.verified,
        "created_at": artist.created_at,
    }
    payload.update(extra)
    return payload


# PUBLIC_INTERFACE
def is_following(db: Session, user_id: uuid.UUID, artist_id: uuid.UUID) -> bool:
    return (
        db.execute(select(Follow.user_id).where(Follow.user_id == user_id, Follow.artist_id == artist_id)).first()
        is not None
    )


@router.post("/artists/{artist_id}/follow", response_model=MessageResponse, summary="Follow an artist", operation_id="follow_artist")
def follow_artist(
    artist_id: uuid.UUID, user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)
):
    if db.get(Artist, artist_id) is None:
        raise NotFoundError("Artist not found")

    stmt = dialect_insert(db, Follow).values(user_id=user.id, artist_id=artist_id).on_conflict_do_nothing(
        index_elements=[Follow.user_id, Follow.artist_id]
    )
    db.execute(stmt)
    db.commit()
    return {"message": "Artist followed successfully"}


@router.delete(
    "/artists/{artist_id}/follow", response_model=MessageResponse, summary="Unfollow an artist", operation_id="unfollow_artist"
)
def unfollow_artist(
    artist_id: uuid.UUID, user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)
):
    db.execute(delete(Follow).where(Follow.user_id == user.id, Follow.artist_id == artist_id))
    db.commit()
    return {"message": "Artist unfollowed successfully"}


@router.get(
    "/artists/{artist_id}/following",
    response_model=FollowingResponse,
    summary="Check whether the caller follows an artist",
    operation_id="check_following",
)
def check_following(
    artist_id: uuid.UUID, user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)
):
    return {"following": is_following(db, user.id, artist_id)}


@router.get("/following", response_model=List[FollowedArtist], summary="Followed artists", operation_id="list_following")
def list_following(user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)):
    """Artists the caller follows, most recent follow first, with their song counts."""
    song_count = (
        select(func.count(Song.id)).where(Song.artist_id == Artist.id).correlate(Artist).scalar_subquery()
    )
    rows = db.execute(
        select(Artist, Follow.followed_at, song_count.label("song_count"))
        .join(Follow, Follow.artist_id == Artist.id)
        .where(Follow.user_id == user.id)
        .order_by(Follow.followed_at.desc())
    ).all()
    return [artist_payload(artist, followed_at=followed_at, song_count=count) for artist, followed_at, count in rows]
