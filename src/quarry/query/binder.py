"""
Query binder: one builder call → one SQL fragment.

The binder owns the keyword bookkeeping of a single query. It remembers
which clause sections (``SELECT``, ``FROM``, ``WHERE``, ``GROUP``,
``ORDER``) are already open so that the first condition emits ``WHERE``
and later ones ``AND``/``OR``, the first ordering emits ``ORDER BY`` and
later ones a comma, and so on.

Fragments carry SQL text plus the placeholder names they introduced; the
builder binds the caller's values under those names. The binder never
sees a value, so nothing a caller passes can end up inlined in SQL text.

Architecture::

    builder.where("id", 5)
        └─► binder.create_binding("where", "id", "=", "AND")
                └─► Fragment(" WHERE id=:id", placeholders=("id",))
        └─► bag.set_parameter("id", 5)

State is per binder and a binder belongs to exactly one builder.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from quarry.dialect import Dialect
from quarry.errors import QueryStateError, ValidationError


class Section(str, Enum):
    """Clause sections tracked per query."""

    SELECT = "SELECT"
    FROM = "FROM"
    WHERE = "WHERE"
    GROUP = "GROUP"
    ORDER = "ORDER"


@dataclass(frozen=True)
class Fragment:
    """Immutable piece of SQL produced for one builder call."""

    sql: str
    placeholders: tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.sql


COMPARISON_OPERATORS = frozenset({"=", "!=", "<>", "<", "<=", ">", ">="})
BOOLEAN_OPERATORS = {"AND": "AND", "OR": "OR", "&&": "AND", "||": "OR"}
JOIN_KINDS = frozenset({"INNER", "LEFT", "RIGHT", "CROSS"})
CONDITION_KINDS = frozenset({"where", "in", "between", "like", "null"})


def parameter_name(column: str) -> str:
    """Placeholder name derived from a column expression."""
    name = re.sub(r"[^\w.]+", "_", column).strip("_")
    if not name:
        raise ValidationError(f"Cannot derive a parameter name from {column!r}")
    return name


class QueryBinder:
    """Builds fragments and tracks opened sections for one query."""

    def __init__(self, dialect: Dialect):
        self._dialect = dialect
        self._opened: set[Section] = set()
        self._operator_pending = False
        self._kinds: dict[str, Callable[..., Fragment]] = {
            "select": self._select,
            "alias": self._alias,
            "from": self._from,
            "join": self._join,
            "where": self._where,
            "in": self._in,
            "between": self._between,
            "like": self._like,
            "null": self._null,
            "operator": self._operator,
            "group_by": self._group_by,
            "order_by": self._order_by,
            "order_by_field": self._order_by_field,
            "limit": self._limit,
            "offset": self._offset,
            "insert": self._insert,
            "update": self._update,
            "delete": self._delete,
            "sql": self._sql,
        }

    # ── Public API ───────────────────────────────────────────────

    def create_binding(self, kind: str, *args: Any) -> Fragment:
        """Build the fragment for clause ``kind``."""
        try:
            build = self._kinds[kind]
        except KeyError:
            raise ValidationError(f"Unknown binding kind: {kind!r}") from None
        if self._operator_pending and kind not in CONDITION_KINDS:
            raise QueryStateError(f"set_operator() must be followed by a condition, not {kind!r}")
        return build(*args)

    def is_open(self, section: Section) -> bool:
        return section in self._opened

    @property
    def operator_pending(self) -> bool:
        """True between an explicit operator and the condition it joins."""
        return self._operator_pending

    def reset(self) -> None:
        self._opened.clear()
        self._operator_pending = False

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    # ── Helpers ──────────────────────────────────────────────────

    def _open(self, section: Section) -> bool:
        """Open ``section``; True when it was already open."""
        was_open = section in self._opened
        self._opened.add(section)
        return was_open

    def _condition(self, predicate: str, boolean: str, placeholders: tuple[str, ...]) -> Fragment:
        if self._operator_pending:
            self._operator_pending = False
            return Fragment(f" {predicate}", placeholders)
        if self._open(Section.WHERE):
            keyword = BOOLEAN_OPERATORS.get(boolean.upper())
            if keyword is None:
                raise ValidationError(f"Unsupported boolean operator: {boolean!r}")
            return Fragment(f" {keyword} {predicate}", placeholders)
        return Fragment(f" WHERE {predicate}", placeholders)

    # ── SELECT / FROM / JOIN ─────────────────────────────────────

    def _select(self, columns: list[str]) -> Fragment:
        if self._open(Section.SELECT):
            return Fragment("," + ",".join(columns) if columns else "")
        return Fragment("SELECT " + (",".join(columns) if columns else "*"))

    def _alias(self, expression: str, alias: str, placeholders: tuple[str, ...] = ()) -> Fragment:
        prefix = "," if self._open(Section.SELECT) else "SELECT "
        return Fragment(f"{prefix}{expression} AS {alias}", placeholders)

    def _from(self, table: str) -> Fragment:
        if self._open(Section.FROM):
            return Fragment(f",{table}")
        return Fragment(f" FROM {table}")

    def _join(self, kind: str, table: str, left: str | None = None, right: str | None = None) -> Fragment:
        kind = kind.upper()
        if kind not in JOIN_KINDS:
            raise ValidationError(f"Unsupported join kind: {kind!r}")
        if kind == "CROSS":
            return Fragment(f" CROSS JOIN {table}")
        if not left or not right:
            raise ValidationError(f"{kind} JOIN on {table} needs both join columns")
        return Fragment(f" {kind} JOIN {table} ON {left}={right}")

    # ── WHERE family ─────────────────────────────────────────────

    def _where(self, column: str, operator: str = "=", boolean: str = "AND") -> Fragment:
        if operator not in COMPARISON_OPERATORS:
            raise ValidationError(f"Unsupported comparison operator: {operator!r}")
        name = parameter_name(column)
        return self._condition(f"{column}{operator}:{name}", boolean, (name,))

    def _in(self, column: str, negate: bool = False, boolean: str = "AND") -> Fragment:
        name = parameter_name(column)
        keyword = "NOT IN" if negate else "IN"
        return self._condition(f"{column} {keyword} (:{name})", boolean, (name,))

    def _between(self, column: str, negate: bool = False, boolean: str = "AND") -> Fragment:
        name = parameter_name(column)
        keyword = "NOT BETWEEN" if negate else "BETWEEN"
        low, high = f"{name}_from", f"{name}_to"
        return self._condition(f"{column} {keyword} :{low} AND :{high}", boolean, (low, high))

    def _like(self, column: str, negate: bool = False, boolean: str = "AND") -> Fragment:
        name = parameter_name(column)
        keyword = "NOT LIKE" if negate else "LIKE"
        return self._condition(f"{column} {keyword} :{name}", boolean, (name,))

    def _null(self, column: str, negate: bool = False, boolean: str = "AND") -> Fragment:
        keyword = "IS NOT NULL" if negate else "IS NULL"
        return self._condition(f"{column} {keyword}", boolean, ())

    def _operator(self, operator: str) -> Fragment:
        keyword = BOOLEAN_OPERATORS[operator.upper()]
        self._operator_pending = True
        return Fragment(f" {keyword}")

    # ── GROUP / ORDER / LIMIT ────────────────────────────────────

    def _group_by(self, columns: list[str]) -> Fragment:
        if self._open(Section.GROUP):
            return Fragment("," + ",".join(columns))
        return Fragment(" GROUP BY " + ",".join(columns))

    def _order_by(self, columns: list[str], direction: str | None = None) -> Fragment:
        text = ",".join(columns)
        if direction:
            direction = direction.upper()
            if direction not in ("ASC", "DESC"):
                raise ValidationError(f"Unsupported sort direction: {direction!r}")
            text += f" {direction}"
        if self._open(Section.ORDER):
            return Fragment("," + text)
        return Fragment(" ORDER BY " + text)

    def _order_by_field(self, column: str, count: int) -> Fragment:
        base = parameter_name(column)
        names = tuple(f"{base}_field_{i}" for i in range(count))
        expression = self._dialect.order_by_field(column, [f":{name}" for name in names])
        if self._open(Section.ORDER):
            return Fragment("," + expression, names)
        return Fragment(" ORDER BY " + expression, names)

    def _limit(self) -> Fragment:
        return Fragment(" LIMIT :_limit", ("_limit",))

    def _offset(self) -> Fragment:
        return Fragment(" OFFSET :_offset", ("_offset",))

    # ── Statements ───────────────────────────────────────────────

    def _insert(self, table: str, fields: list[str]) -> Fragment:
        names = tuple(parameter_name(field) for field in fields)
        columns = ",".join(fields)
        markers = ",".join(f":{name}" for name in names)
        return Fragment(f"INSERT INTO {table} ({columns}) VALUES ({markers})", names)

    def _update(self, table: str, fields: list[str]) -> Fragment:
        names = tuple(parameter_name(field) for field in fields)
        assignments = ",".join(f"{field}=:{name}" for field, name in zip(fields, names))
        return Fragment(f"UPDATE {table} SET {assignments}", names)

    def _delete(self, table: str) -> Fragment:
        return Fragment(f"DELETE FROM {table}")

    def _sql(self, text: str) -> Fragment:
        return Fragment(text)


__all__ = [
    "Fragment",
    "QueryBinder",
    "Section",
    "parameter_name",
]
