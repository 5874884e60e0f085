"""
Offset pagination for listing services.

Pages are 1-indexed. Page and limit arrive here already validated by the
blueprint layer (see ``scholarhub.blueprints.parse_pagination``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from sqlalchemy import Select, func, select

from scholarhub.models import db

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_meta(page: PageRequest, total_items: int) -> dict:
    total_pages = math.ceil(total_items / page.limit) if total_items else 0
    return {
        "page": page.page,
        "limit": page.limit,
        "totalItems": total_items,
        "totalPages": total_pages,
        "hasNext": page.page < total_pages,
        "hasPrev": page.page > 1,
    }


def count_rows(stmt: Select) -> int:
    """Total rows ``stmt`` would return, ignoring any ordering."""
    subq = stmt.order_by(None).subquery()
    return db.session.execute(select(func.count()).select_from(subq)).scalar_one()
