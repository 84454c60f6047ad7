"""SQL dialect abstraction for backend-aware fragment generation.

Provides a ``Dialect`` protocol and concrete implementations for every
supported backend. The binder and generator ask the dialect for the few
fragments that differ between databases (positional markers, literal ``%``, ``LEAST``,
``GROUP_CONCAT``, ``FIELD`` ordering) so the rest of the pipeline stays a
plain string/fragment assembly.

Manifesto:
    The builder is a direct, backend-aware string pipeline rather than an
    abstract syntax tree. Without a dialect layer, backend-specific syntax
    would leak into every fragment and break as soon as a profile falls
    back to another backend.

    - **One interface:** Dialect protocol for every backend-specific fragment
    - **Zero coupling:** Binder and generator never import database drivers
    - **Stateless:** Dialects are pre-instantiated singletons

Architecture::

    ┌──────────────┐ ┌──────────────┐ ┌──────────────┐
    │ SQLite       │ │ PostgreSQL   │ │ MySQL        │
    │ ?, ?, ?      │ │ %s, %s, %s   │ │ %s, %s, %s   │
    │ %            │ │ %%           │ │ %%           │
    │ MIN(a,b)     │ │ LEAST(a,b)   │ │ LEAST(a,b)   │
    │ group_concat │ │ string_agg   │ │ GROUP_CONCAT │
    │ CASE order   │ │ CASE order   │ │ FIELD(...)   │
    └──────────────┘ └──────────────┘ └──────────────┘

Examples:
    >>> from quarry.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.least(["a", "b"])
    'MIN(a,b)'

Tags:
    dialect, sql, abstraction, portability, database, quarry

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from quarry.errors import ConfigError


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment**. Arguments called ``token`` or
    ``tokens`` are named placeholders (``:name``) that the generator later
    rewrites into positional markers; dialects never see values.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional marker (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated positional marker list."""
        ...

    def escape_literal_percent(self, text: str) -> str:
        """Protect literal ``%`` in ``text`` from the driver's parameter formatting."""
        ...

    def least(self, expressions: list[str]) -> str:
        """Smallest of several expressions."""
        ...

    def group_concat(self, expression: str, separator_token: str) -> str:
        """Aggregate string concatenation with a bound separator."""
        ...

    def order_by_field(self, column: str, tokens: list[str]) -> str:
        """Ordering expression placing ``column`` values in the given order."""
        ...


def _case_ordering(column: str, tokens: list[str]) -> str:
    whens = " ".join(f"WHEN {token} THEN {i}" for i, token in enumerate(tokens))
    return f"CASE {column} {whens} ELSE {len(tokens)} END"


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, scalar ``MIN`` for ``LEAST``."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def escape_literal_percent(self, text: str) -> str:
        return text

    def least(self, expressions: list[str]) -> str:
        # SQLite's multi-argument MIN() is the scalar LEAST.
        return f"MIN({','.join(expressions)})"

    def group_concat(self, expression: str, separator_token: str) -> str:
        return f"group_concat({expression}, {separator_token})"

    def order_by_field(self, column: str, tokens: list[str]) -> str:
        return _case_ordering(column, tokens)


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders (psycopg2).

    ``string_agg`` requires text input, so the aggregated expression is cast.
    """

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def escape_literal_percent(self, text: str) -> str:
        return text.replace("%", "%%")

    def least(self, expressions: list[str]) -> str:
        return f"LEAST({','.join(expressions)})"

    def group_concat(self, expression: str, separator_token: str) -> str:
        return f"string_agg(CAST({expression} AS TEXT), {separator_token})"

    def order_by_field(self, column: str, tokens: list[str]) -> str:
        return _case_ordering(column, tokens)


class MySQLDialect:
    """MySQL / MariaDB dialect: ``%s`` placeholders (mysql-connector)."""

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def escape_literal_percent(self, text: str) -> str:
        return text.replace("%", "%%")

    def least(self, expressions: list[str]) -> str:
        return f"LEAST({','.join(expressions)})"

    def group_concat(self, expression: str, separator_token: str) -> str:
        return f"GROUP_CONCAT({expression} SEPARATOR {separator_token})"

    def order_by_field(self, column: str, tokens: list[str]) -> str:
        return f"FIELD({column},{','.join(tokens)})"


# =========================================================================
# Registry / Factory
# =========================================================================

_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "mysql": MySQLDialect(),
}


def get_dialect(name: str) -> Dialect:
    """Get a dialect by backend name.

    Raises:
        ConfigError: If ``name`` is not recognised.

    Example:
        >>> get_dialect("postgresql").placeholders(2)
        '%s, %s'
    """
    key = name.lower()
    if key not in _DIALECTS:
        raise ConfigError(
            f"Unknown dialect '{name}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (third-party drivers, test doubles)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "get_dialect",
    "register_dialect",
]
