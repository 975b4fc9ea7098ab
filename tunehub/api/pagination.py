"""
Pagination and sorting helpers shared by list endpoints.

Sort keys are resolved through fixed allow-lists that map request values onto
SQLAlchemy column expressions; unknown keys are rejected, never interpolated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from sqlalchemy import asc, desc
from sqlalchemy.sql.elements import ColumnElement

from tunehub.api.errors import ValidationError

MAX_LIMIT = 100


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# PUBLIC_INTERFACE
def page_params(page: int, limit: int) -> PageParams:
    """Validate page/limit values coming from the query string."""
    if page < 1:
        raise ValidationError("page must be at least 1")
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")
    return PageParams(page=page, limit=limit)


# PUBLIC_INTERFACE
def order_by_clause(sort: str, order: str, allowed: Mapping[str, ColumnElement[Any]]) -> ColumnElement[Any]:
    """Return an ORDER BY expression for an allow-listed sort key."""
    column = allowed.get(sort)
    if column is None:
        raise ValidationError(f"Invalid sort key '{sort}'. Allowed: {', '.join(sorted(allowed))}")

    direction = order.lower()
    if direction == "asc":
        return asc(column)
    if direction == "desc":
        return desc(column)
    raise ValidationError("order must be 'asc' or 'desc'")


# PUBLIC_INTERFACE
def paginated(items: List[Any], params: PageParams, total: int) -> Dict[str, Any]:
    """Build the `{items, pagination}` response body."""
    return {
        "items": items,
        "pagination": {
            "page": params.page,
            "limit": params.limit,
            "total": total,
            "totalPages": math.ceil(total / params.limit) if total else 0,
        },
    }


# PUBLIC_INTERFACE
def check_limit(limit: int) -> int:
    """Validate a bare `limit` query value for non-paginated ranking endpoints."""
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")
    return limit
