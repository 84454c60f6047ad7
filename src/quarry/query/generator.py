"""
SQL generator: named placeholders → positional driver markers.

The builder (and raw queries) write SQL with ``:name`` placeholders. Before
execution the generator rewrites every placeholder into the platform
dialect's positional marker (``?`` or ``%s``) and records the binding
order, the left-to-right sequence of names the processor must bind.

Manifesto:
    Raw and fluent queries share this single rewrite path, so a raw
    ``SELECT * FROM t WHERE x=:x`` compiles exactly like the fluent
    ``select().from_("t").where("x", 1)``. Every placeholder must be bound
    before anything reaches the backend; a gap is a
    :class:`~quarry.errors.ParameterMismatchError` listing the unbound names.

Architecture::

    "SELECT id FROM users WHERE id=:id AND tag IN (:tag)"
                       │  bag = {id: 5, tag: ('a', 'b')}
                       ▼
    _PLACEHOLDER_RE ── skips '...' literals, ::casts, 12:30
                       escapes literal % for %s-style drivers
                       ▼
    occurrence_values(["id", "tag"], bag) → [(5,), ('a', 'b')]
                       ▼
    "SELECT id FROM users WHERE id=? AND tag IN (?, ?)"

Statements without placeholders pass through untouched: the platform then
calls the driver without parameters, so no ``%`` formatting happens.

Expansion rules (``occurrence_values``):
    - scalar: one marker at every occurrence of the name
    - tuple: one marker per element (empty tuple is an error)
    - collision list, name used once: items spliced at that occurrence
    - collision list, name used once per item: occurrence i binds item i

Tags:
    sql, placeholders, parameters, generator, quarry
"""

from __future__ import annotations

import itertools
import re
from collections import Counter
from typing import Any

from quarry.dialect import Dialect
from quarry.errors import ParameterMismatchError
from quarry.query.parameters import MISSING, ParameterBag
from quarry.query.types import CompiledSql, QueryType

_PLACEHOLDER_RE = re.compile(
    r"""
    (?P<literal>'(?:[^']|'')*')              # single-quoted string literal
    | (?P<quoted>"(?:[^"]|"")*")             # double-quoted identifier
    | (?P<cast>::\w+)                        # PostgreSQL type cast
    | (?<![\w:]):(?P<name>[^\s,;()'":=<>%]+) # named placeholder
    | (?P<percent>%)                         # literal percent sign
    """,
    re.VERBOSE,
)

_STATEMENT_KEYWORDS: dict[str, QueryType] = {
    "SELECT": QueryType.SELECT,
    "WITH": QueryType.SELECT,
    "SHOW": QueryType.SELECT,
    "PRAGMA": QueryType.SELECT,
    "EXPLAIN": QueryType.SELECT,
    "DESCRIBE": QueryType.SELECT,
    "INSERT": QueryType.INSERT,
    "REPLACE": QueryType.INSERT,
    "UPDATE": QueryType.UPDATE,
    "DELETE": QueryType.DELETE,
}


def placeholder_names(text: str) -> list[str]:
    """Placeholder names in occurrence order (duplicates kept)."""
    return [m.group("name") for m in _PLACEHOLDER_RE.finditer(text) if m.group("name")]


def occurrence_values(order: list[str], bag: ParameterBag) -> list[tuple[Any, ...]]:
    """Values to bind at each placeholder occurrence of ``order``.

    Returns one tuple per occurrence; its length is the number of markers
    that occurrence expands to. Shared by the generator (marker count) and
    the processor (value list), so the two always agree.
    """
    counts = Counter(order)
    seen: Counter[str] = Counter()
    groups: list[tuple[Any, ...]] = []

    for name in order:
        value = bag.get_parameter(name)
        if value is MISSING:
            raise ParameterMismatchError(
                f"No parameter bound for placeholder ':{name}'",
                unmatched=[name],
                parameters=bag.get_all(),
            )

        if isinstance(value, list):
            if counts[name] == 1:
                items = list(value)
            elif counts[name] == len(value):
                items = [value[seen[name]]]
            else:
                raise ParameterMismatchError(
                    f"Placeholder ':{name}' occurs {counts[name]} times "
                    f"but {len(value)} values are bound",
                    unmatched=[name],
                    parameters=bag.get_all(),
                )
        else:
            items = [value]
        seen[name] += 1

        group: list[Any] = []
        for item in items:
            if isinstance(item, tuple):
                if not item:
                    raise ParameterMismatchError(
                        f"Placeholder ':{name}' is bound to an empty sequence",
                        unmatched=[name],
                        parameters=bag.get_all(),
                    )
                group.extend(item)
            else:
                group.append(item)
        groups.append(tuple(group))

    return groups


def statement_type(query: str) -> QueryType:
    """Classify a statement by its leading keyword."""
    stripped = query.lstrip(" \t\r\n(")
    keyword = stripped.split(None, 1)[0].upper() if stripped else ""
    return _STATEMENT_KEYWORDS.get(keyword, QueryType.NONE)


def _split_top_level(text: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def selected_fields(query: str) -> list[str]:
    """Output column names of a ``SELECT`` statement (aliases win).

    Returns an empty list for non-SELECT statements.
    """
    match = re.match(r"\s*SELECT\s+(?:DISTINCT\s+)?(.*?)(?:\s+FROM\s+|$)", query, re.I | re.S)
    if match is None:
        return []
    fields = []
    for expression in _split_top_level(match.group(1)):
        alias = re.search(r"\s+AS\s+(\S+)$", expression, re.I)
        fields.append(alias.group(1) if alias else expression)
    return fields


class SqlGenerator:
    """Rewrites named placeholders for one dialect."""

    def __init__(self, dialect: Dialect):
        self._dialect = dialect

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    def convert_to_sql(self, text: str, bag: ParameterBag) -> CompiledSql:
        """Rewrite ``text`` and return it with its binding order.

        Raises:
            ParameterMismatchError: A placeholder has no bound parameter,
                or a bound value cannot be spread over its occurrences.
        """
        order = placeholder_names(text)
        if not order:
            return CompiledSql(query=text, parameters=[])

        unmatched = [name for name in dict.fromkeys(order) if not bag.has_parameter(name)]
        if unmatched:
            raise ParameterMismatchError(
                f"Parameter count mismatch: unbound placeholders {unmatched}",
                unmatched=unmatched,
                parameters=bag.get_all(),
            )

        groups = iter(occurrence_values(order, bag))
        position = itertools.count()

        def _replace(match: re.Match[str]) -> str:
            if match.group("name") is None:
                return self._dialect.escape_literal_percent(match.group(0))
            group = next(groups)
            return ", ".join(self._dialect.placeholder(next(position)) for _ in group)

        return CompiledSql(query=_PLACEHOLDER_RE.sub(_replace, text), parameters=order)


__all__ = [
    "SqlGenerator",
    "occurrence_values",
    "placeholder_names",
    "selected_fields",
    "statement_type",
]
