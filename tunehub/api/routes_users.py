"""
Account self-service endpoints (authenticated):
- GET /users/me, PUT /users/me, DELETE /users/me
- PUT /users/me/password
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from tunehub.api.auth import hash_password, verify_password
from tunehub.api.db import db_session_dep
from tunehub.api.errors import AuthError, ConflictError
from tunehub.api.models import User
from tunehub.api.policy import require
from tunehub.api.schemas import MessageResponse, PasswordChangeRequest, UserResponse, UserUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse, summary="Current user", operation_id="get_me")
def get_me(user: User = Depends(require("authenticated"))):
    return user


@router.put("/me", response_model=UserResponse, summary="Update current user", operation_id="update_me")
def update_me(
    req: UserUpdateRequest,
    user: User = Depends(require("authenticated")),
    db: Session = Depends(db_session_dep),
):
    """Change username and/or email. The role cannot be changed here."""
    if req.email is not None:
        email = req.email.lower().strip()
        taken = db.execute(select(User.id).where(User.email == email, User.id != user.id)).scalar_one_or_none()
        if taken:
            raise ConflictError("Email is already registered")
        user.email = email
    if req.username is not None:
        user.username = req.username.strip()
    db.commit()
    return user


@router.put(
    "/me/password", response_model=MessageResponse, summary="Change password", operation_id="change_password"
)
def change_password(
    req: PasswordChangeRequest,
    user: User = Depends(require("authenticated")),
    db: Session = Depends(db_session_dep),
):
    if not verify_password(req.current_password, user.password_hash):
        raise AuthError("Current password is incorrect")

    user.password_hash = hash_password(req.new_password)
    db.commit()
    logger.info("password_changed: user_id=%s", user.id)
    return {"message": "Password updated successfully"}


@router.delete("/me", response_model=MessageResponse, summary="Delete own account", operation_id="delete_me")
def delete_me(user: User = Depends(require("authenticated")), db: Session = Depends(db_session_dep)):
    """Delete the account; the database cascades to profile, playlists, likes, follows and history."""
    user_id = user.id
    db.execute(delete(User).where(User.id == user_id))
    db.commit()
    logger.info("user_deleted: user_id=%s by=self", user_id)
    return {"message": "Account deleted successfully"}
