"""SQLite platform.

Uses the built-in ``sqlite3`` module. The connection runs with
``isolation_level=None`` so the driver never opens transactions on its
own; explicit ``BEGIN``/``COMMIT``/``ROLLBACK`` come from the processor
when the profile disables autocommit.
"""

from __future__ import annotations

from typing import Any

from quarry.errors import DatabaseConnectionError
from quarry.protocols import Connection

from .base import Platform


class SQLitePlatform(Platform):
    """
    SQLite platform.

    Suitable for:
    - Development and testing (``path = ":memory:"``)
    - Single-process applications
    - Fallback profile for network backends
    """

    backend = "sqlite"
    driver_module = "sqlite3"

    def _open(self) -> Any:
        import sqlite3

        path = self.profile.path or self.profile.database or ":memory:"
        uri = path.startswith("file:")

        try:
            conn = sqlite3.connect(
                path,
                isolation_level=None,
                check_same_thread=False,
                uri=uri,
                **self.profile.options,
            )
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ).with_context(backend=self.backend, connection=self.profile.name) from e
        return conn

    def driver_errors(self) -> tuple[type[BaseException], ...]:
        import sqlite3

        return (sqlite3.Error,)

    def _begin(self, connection: Connection) -> None:
        connection.cursor().execute("BEGIN")

    def _commit(self, connection: Connection) -> None:
        connection.cursor().execute("COMMIT")

    def _rollback(self, connection: Connection) -> None:
        connection.cursor().execute("ROLLBACK")


__all__ = [
    "SQLitePlatform",
]
