import uuid

import pytest

from tunehub.api.errors import AuthorizationError, ValidationError
from tunehub.api.models import Song, User
from tunehub.api.pagination import check_limit, order_by_clause, page_params, paginated
from tunehub.api.policy import POLICIES, check_role, ensure_owner, require


def _user(role):
    return User(id=uuid.uuid4(), email=f"{role}@tunehub.dev", password_hash="x", username=role, role=role)


def test_role_sets():
    check_role("songs:create", _user("artist"))
    check_role("songs:create", _user("admin"))
    with pytest.raises(AuthorizationError):
        check_role("songs:create", _user("user"))
    with pytest.raises(AuthorizationError):
        check_role("albums:create", _user("admin"))
    with pytest.raises(AuthorizationError):
        check_role("admin", _user("artist"))
    for role in ("user", "artist", "admin"):
        check_role("authenticated", _user(role))


def test_ownership_and_admin_bypass():
    owner = _user("artist")
    admin = _user("admin")
    ensure_owner("songs:update", owner, owner.id, "no")
    ensure_owner("songs:update", admin, uuid.uuid4(), "no")

    with pytest.raises(AuthorizationError) as exc:
        ensure_owner("songs:update", _user("artist"), owner.id, "Not yours")
    assert exc.value.message == "Not yours"

    # Admins only bypass ownership where the policy says so.
    with pytest.raises(AuthorizationError):
        ensure_owner("playlists:manage", admin, uuid.uuid4(), "no")


def test_unknown_policy_is_a_programming_error():
    assert "admin" in POLICIES
    with pytest.raises(RuntimeError):
        require("songs:explode")


def test_page_params_bounds():
    assert page_params(2, 20).offset == 20
    for page, limit in ((0, 10), (1, 0), (1, 101)):
        with pytest.raises(ValidationError):
            page_params(page, limit)
    assert check_limit(100) == 100
    with pytest.raises(ValidationError):
        check_limit(0)


def test_order_by_clause_uses_allow_list():
    allowed = {"title": Song.title}
    clause = order_by_clause("title", "ASC", allowed)
    assert "songs.title ASC" in str(clause)

    with pytest.raises(ValidationError) as exc:
        order_by_clause("password_hash", "asc", allowed)
    assert "Invalid sort key" in exc.value.message
    with pytest.raises(ValidationError):
        order_by_clause("title", "up", allowed)


def test_paginated_total_pages():
    params = page_params(1, 3)
    assert paginated([], params, 0)["pagination"]["totalPages"] == 0
    assert paginated([1, 2, 3], params, 7)["pagination"] == {"page": 1, "limit": 3, "total": 7, "totalPages": 3}


def test_policy_table_is_enforced_by_routes(client, register):
    token, _ = register(role="user")
    assert client.get("/artist/songs", headers={"Authorization": f"Bearer {token}"}).status_code == 403
