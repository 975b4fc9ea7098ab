"""
Authentication utilities: password hashing and JWT handling.

Clients send:
- Authorization: Bearer <token>

Tokens are issued by POST /auth/register and POST /auth/login.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from tunehub.api.config import Settings
from tunehub.api.db import db_session_dep
from tunehub.api.errors import AuthError
from tunehub.api.models import User

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
_bearer_scheme = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Hash a plain-text password."""
    return _pwd_context.hash(password)


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plain-text password against a hash."""
    return _pwd_context.verify(password, password_hash)


# PUBLIC_INTERFACE
def create_access_token(settings: Settings, *, user_id: uuid.UUID, email: str, role: str) -> str:
    """
    Create a signed JWT access token.

    Token contains:
      - sub: user_id (string UUID)
      - email
      - role
      - iat, exp

    Returns:
        JWT string.
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=settings.jwt_expires_minutes)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, settings.require_jwt_secret(), algorithm=settings.jwt_algorithm)


# PUBLIC_INTERFACE
def decode_access_token(settings: Settings, token: str) -> Dict[str, Any]:
    """Validate signature and expiry, returning the token payload."""
    try:
        return jwt.decode(token, settings.require_jwt_secret(), algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise AuthError("Token expired")
    except JWTError:
        raise AuthError("Invalid token")


def _user_from_token(settings: Settings, db: Session, token: str) -> User:
    payload = decode_access_token(settings, token)
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthError("Invalid token payload")

    user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if user is None:
        raise AuthError("User not found")
    return user


# PUBLIC_INTERFACE
def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(db_session_dep),
) -> User:
    """
    FastAPI dependency that returns the authenticated user.

    Raises 401 if the token is missing, invalid, expired, or the user no longer exists.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Not authenticated")
    return _user_from_token(request.app.state.settings, db, credentials.credentials)


# PUBLIC_INTERFACE
def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(db_session_dep),
) -> Optional[User]:
    """
    Like `get_current_user` but returns None for anonymous callers.

    A bad token on a public route is treated as anonymous access.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    try:
        return _user_from_token(request.app.state.settings, db, credentials.credentials)
    except AuthError:
        return None
