"""
Like endpoints (authenticated):
- GET /likes
- POST /likes/{song_id} (idempotent)
- DELETE /likes/{song_id} (idempotent)
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.orm import Session

from tunehub.api.catalog import get_song_or_404, row_payload, song_select
from tunehub.api.db import db_session_dep, dialect_insert
from tunehub.api.models import Like, Song, User
from tunehub.api.policy import require
from tunehub.api.schemas import LikedSong, MessageResponse

router = APIRouter(prefix="/likes", tags=["Likes"])


@router.get("", response_model=List[LikedSong], summary="Liked songs", operation_id="list_likes")
def list_likes(user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)):
    """Caller's liked songs, most recent like first."""
    rows = db.execute(
        song_select(Like.created_at.label("liked_at"))
        .join(Like, Like.song_id == Song.id)
        .where(Like.user_id == user.id)
        .order_by(Like.created_at.desc())
    ).all()
    return [row_payload(r) for r in rows]


@router.post("/{song_id}", response_model=MessageResponse, summary="Like a song", operation_id="like_song")
def like_song(song_id: uuid.UUID, user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)):
    get_song_or_404(db, song_id)
    stmt = dialect_insert(db, Like).values(user_id=user.id, song_id=song_id).on_conflict_do_nothing(
        index_elements=[Like.user_id, Like.song_id]
    )
    db.execute(stmt)
    db.commit()
    return {"message": "Song liked"}


@router.delete("/{song_id}", response_model=MessageResponse, summary="Unlike a song", operation_id="unlike_song")
def unlike_song(
    song_id: uuid.UUID, user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)
):
    db.execute(delete(Like).where(Like.user_id == user.id, Like.song_id == song_id))
    db.commit()
    return {"message": "Song unliked"}
