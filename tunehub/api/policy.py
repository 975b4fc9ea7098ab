"""
Declarative authorization policies.

Every protected route names a policy from `POLICIES`. The role check runs as a
FastAPI dependency (`require`); ownership checks run inside handlers once the
resource is loaded (`ensure_owner`).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from tunehub.api.auth import get_current_user
from tunehub.api.errors import AuthorizationError
from tunehub.api.models import ROLE_ADMIN, ROLE_ARTIST, ROLE_USER, ROLES, Artist, User

logger = logging.getLogger(__name__)

ANY_ROLE: FrozenSet[str] = frozenset(ROLES)


@dataclass(frozen=True)
class Policy:
    roles: FrozenSet[str]
    admin_bypasses_ownership: bool = False


POLICIES: Dict[str, Policy] = {
    "authenticated": Policy(ANY_ROLE),
    "songs:create": Policy(frozenset({ROLE_ARTIST, ROLE_ADMIN})),
    "songs:update": Policy(frozenset({ROLE_ARTIST, ROLE_ADMIN}), admin_bypasses_ownership=True),
    "songs:delete": Policy(frozenset({ROLE_ARTIST, ROLE_ADMIN}), admin_bypasses_ownership=True),
    "albums:create": Policy(frozenset({ROLE_ARTIST})),
    "albums:update": Policy(frozenset({ROLE_ARTIST})),
    "albums:delete": Policy(frozenset({ROLE_ARTIST})),
    "playlists:manage": Policy(ANY_ROLE),
    "artist:self": Policy(frozenset({ROLE_ARTIST})),
    "upload:audio": Policy(frozenset({ROLE_ARTIST, ROLE_ADMIN})),
    "upload:image": Policy(ANY_ROLE),
    "admin": Policy(frozenset({ROLE_ADMIN})),
}

# Roles a caller may pick at registration; admins are provisioned from the CLI.
REGISTRATION_ROLES = frozenset({ROLE_USER, ROLE_ARTIST})


def _policy(name: str) -> Policy:
    try:
        return POLICIES[name]
    except KeyError:
        raise RuntimeError(f"Unknown authorization policy: {name}")


# PUBLIC_INTERFACE
def check_role(policy_name: str, user: User) -> None:
    """Raise AuthorizationError if the user's role is outside the policy's role set."""
    policy = _policy(policy_name)
    if user.role not in policy.roles:
        logger.info("forbidden_role: policy=%s user_id=%s role=%s", policy_name, user.id, user.role)
        raise AuthorizationError("Insufficient permissions")


# PUBLIC_INTERFACE
def require(policy_name: str) -> Callable[..., User]:
    """Build a dependency that authenticates the caller and enforces the policy's roles."""
    _policy(policy_name)

    def _dependency(user: User = Depends(get_current_user)) -> User:
        check_role(policy_name, user)
        return user

    return _dependency


# PUBLIC_INTERFACE
def ensure_owner(policy_name: str, user: User, owner_user_id: Optional[uuid.UUID], message: str) -> None:
    """Raise AuthorizationError unless the user owns the resource (or the policy lets admins through)."""
    policy = _policy(policy_name)
    if owner_user_id is not None and owner_user_id == user.id:
        return
    if policy.admin_bypasses_ownership and user.role == ROLE_ADMIN:
        return
    logger.info("forbidden_owner: policy=%s user_id=%s", policy_name, user.id)
    raise AuthorizationError(message)


# PUBLIC_INTERFACE
def artist_for_user(db: Session, user: User) -> Optional[Artist]:
    """Return the caller's artist profile, if any."""
    return db.execute(select(Artist).where(Artist.user_id == user.id)).scalar_one_or_none()


# PUBLIC_INTERFACE
def require_artist_profile(db: Session, user: User) -> Artist:
    """Return the caller's artist profile or raise 403 'Not an artist'."""
    artist = artist_for_user(db, user)
    if artist is None:
        raise AuthorizationError("Not an artist")
    return artist
