"""
Typed filter predicates for listing queries.

Listing services build a list of predicates from validated input and hand
it to ``apply_filters``, which AND-combines them onto a ``select()``. Each
predicate is a small frozen dataclass that knows how to turn itself into a
SQLAlchemy clause; nothing outside this module appends raw ``where``
conditions for user-supplied filters.

    Eq(Scholar.program, "Engineering")          column = value
    Search((User.name, User.email), "ali")      col1 ILIKE %ali% OR col2 ILIKE ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy import Select, or_
from sqlalchemy.sql.elements import ColumnElement


@dataclass(frozen=True)
class Eq:
    column: Any
    value: Any

    def clause(self) -> ColumnElement:
        return self.column == self.value


@dataclass(frozen=True)
class Search:
    """Case-insensitive substring match across several columns, OR-combined."""

    columns: tuple
    term: str

    def clause(self) -> ColumnElement:
        pattern = f"%{_escape_like(self.term)}%"
        return or_(*(col.ilike(pattern, escape="\\") for col in self.columns))


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def eq_filters(columns: dict[str, Any], values: dict[str, Any]) -> list[Eq]:
    """Equality predicates for every non-empty value whose key maps to a column."""
    return [
        Eq(columns[key], value)
        for key, value in values.items()
        if key in columns and value not in (None, "")
    ]


def apply_filters(stmt: Select, predicates: Iterable[Eq | Search]) -> Select:
    """AND every predicate onto ``stmt``. An empty list leaves it unchanged."""
    clauses = [p.clause() for p in predicates]
    if clauses:
        stmt = stmt.where(*clauses)
    return stmt
