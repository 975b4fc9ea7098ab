"""
Admin endpoints (admin role):
- GET /admin/users, DELETE /admin/users/{id}
- GET /admin/artists, PUT /admin/artists/{id}/verify
- GET /admin/stats
"""

from __future__ import annotations

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from tunehub.api.db import db_session_dep
from tunehub.api.errors import NotFoundError
from tunehub.api.models import Artist, Song, User
from tunehub.api.policy import require
from tunehub.api.routes_follows import artist_payload
from tunehub.api.schemas import AdminArtist, ArtistResponse, MessageResponse, PlatformStats, UserResponse, VerifyArtistRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=List[UserResponse], summary="List users", operation_id="admin_list_users")
def list_users(admin: User = Depends(require("admin")), db: Session = Depends(db_session_dep)):
    return db.execute(select(User).order_by(User.created_at, User.id)).scalars().all()


@router.delete("/users/{user_id}", response_model=MessageResponse, summary="Delete a user", operation_id="admin_delete_user")
def delete_user(user_id: uuid.UUID, admin: User = Depends(require("admin")), db: Session = Depends(db_session_dep)):
    """Delete any account. Owned rows go with it through the foreign-key cascades."""
    result = db.execute(delete(User).where(User.id == user_id))
    if result.rowcount == 0:
        raise NotFoundError("User not found")
    db.commit()
    logger.info("user_deleted: user_id=%s by=%s", user_id, admin.id)
    return {"message": "User deleted"}


@router.get("/artists", response_model=List[AdminArtist], summary="List artists", operation_id="admin_list_artists")
def list_artists(admin: User = Depends(require("admin")), db: Session = Depends(db_session_dep)):
    rows = db.execute(
        select(Artist, User.email, User.username).join(User, Artist.user_id == User.id).order_by(Artist.created_at)
    ).all()
    return [artist_payload(artist, email=email, username=username) for artist, email, username in rows]


@router.put(
    "/artists/{artist_id}/verify",
    response_model=ArtistResponse,
    summary="Set an artist's verified flag",
    operation_id="admin_verify_artist",
)
def verify_artist(
    artist_id: uuid.UUID,
    req: VerifyArtistRequest,
    admin: User = Depends(require("admin")),
    db: Session = Depends(db_session_dep),
):
    artist = db.get(Artist, artist_id)
    if artist is None:
        raise NotFoundError("Artist not found")
    artist.verified = req.verified
    db.commit()
    logger.info("artist_verification: artist_id=%s verified=%s by=%s", artist_id, req.verified, admin.id)
    return artist_payload(artist)


@router.get("/stats", response_model=PlatformStats, summary="Platform statistics", operation_id="admin_stats")
def platform_stats(admin: User = Depends(require("admin")), db: Session = Depends(db_session_dep)):
    users = db.execute(select(func.count(User.id))).scalar_one()
    artists = db.execute(select(func.count(Artist.id))).scalar_one()
    songs, total_plays = db.execute(select(func.count(Song.id), func.coalesce(func.sum(Song.plays), 0))).one()
    return {"users": users, "artists": artists, "songs": songs, "totalPlays": int(total_plays)}
