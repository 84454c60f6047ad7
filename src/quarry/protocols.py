"""
Canonical protocol definitions for quarry.

Platforms hand the processor DB-API 2.0 objects (``sqlite3``, ``psycopg2``,
``mysql.connector``). These protocols describe the slice of DB-API the
pipeline relies on so test doubles and custom drivers only need to match
the shape, not inherit from anything.

Architecture:
    ::

        protocols.py
        ├── Cursor      : execute, fetchall, description, rowcount, lastrowid
        └── Connection  : cursor, commit, rollback, close

Tags:
    protocol, connection, cursor, dbapi, quarry
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """Minimal DB-API cursor used by platforms."""

    description: Sequence[Sequence[Any]] | None
    rowcount: int

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        ...

    def fetchall(self) -> list[Any]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface.

    Examples:
        >>> cursor = conn.cursor()
        >>> cursor.execute("SELECT * FROM users WHERE id = ?", (1,))
        >>> conn.commit()
    """

    def cursor(self) -> Any:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


__all__ = [
    "Connection",
    "Cursor",
]
