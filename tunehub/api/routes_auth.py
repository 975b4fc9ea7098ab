"""
Auth endpoints:
- POST /auth/register
- POST /auth/login

Both return { token, token_type, user }.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from tunehub.api.auth import create_access_token, hash_password, verify_password
from tunehub.api.db import db_session_dep
from tunehub.api.errors import AuthError, ConflictError
from tunehub.api.models import ROLE_ARTIST, Artist, User
from tunehub.api.schemas import AuthLoginRequest, AuthRegisterRequest, AuthTokenResponse, UserSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_response(request: Request, user: User) -> AuthTokenResponse:
    token = create_access_token(request.app.state.settings, user_id=user.id, email=user.email, role=user.role)
    return AuthTokenResponse(token=token, token_type="bearer", user=UserSummary.model_validate(user))


@router.post(
    "/register",
    response_model=AuthTokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Creates a user (plus an artist profile for role=artist) and returns a JWT token.",
    operation_id="register_user",
)
def register(req: AuthRegisterRequest, request: Request, db: Session = Depends(db_session_dep)) -> AuthTokenResponse:
    """Register a new account. User and artist rows are written in one transaction."""
    email = req.email.lower().strip()

    existing = db.execute(select(User.id).where(User.email == email)).scalar_one_or_none()
    if existing:
        raise ConflictError("Email is already registered")

    user = User(email=email, password_hash=hash_password(req.password), username=req.username.strip(), role=req.role)
    db.add(user)
    db.flush()

    if req.role == ROLE_ARTIST:
        db.add(Artist(user_id=user.id, artist_name=user.username))

    response = _token_response(request, user)
    db.commit()
    logger.info("user_registered: user_id=%s role=%s", user.id, user.role)
    return response


@router.post(
    "/login",
    response_model=AuthTokenResponse,
    summary="Login",
    description="Validates credentials and returns a JWT token.",
    operation_id="login_user",
)
def login(req: AuthLoginRequest, request: Request, db: Session = Depends(db_session_dep)) -> AuthTokenResponse:
    """Login an existing user."""
    email = req.email.lower().strip()

    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not verify_password(req.password, user.password_hash):
        raise AuthError("Invalid credentials")

    return _token_response(request, user)
