"""PostgreSQL platform.

Uses ``psycopg2`` (``pip install quarry[postgresql]``). The driver is
imported at ``connect()`` time; when it is missing the platform reports
itself unavailable and the connection manager tries the profile's
fallback instead.

psycopg2 opens a transaction implicitly on the first statement when
autocommit is off, so ``begin`` has nothing to send.
"""

from __future__ import annotations

from typing import Any

from quarry.errors import DatabaseConnectionError
from quarry.protocols import Connection

from .base import Platform


class PostgreSQLPlatform(Platform):
    """PostgreSQL platform (``%s`` placeholders)."""

    backend = "postgresql"
    driver_module = "psycopg2"

    def _open(self) -> Any:
        import psycopg2

        profile = self.profile
        try:
            conn = psycopg2.connect(
                host=profile.host,
                port=profile.port or 5432,
                dbname=profile.database,
                user=profile.username,
                password=profile.password_value(),
                **profile.options,
            )
            conn.autocommit = profile.autocommit
            if profile.charset and not profile.charset.lower().startswith("utf8"):
                conn.set_client_encoding(profile.charset)
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ).with_context(backend=self.backend, connection=profile.name) from e
        return conn

    def driver_errors(self) -> tuple[type[BaseException], ...]:
        import psycopg2

        return (psycopg2.Error,)

    def _begin(self, connection: Connection) -> None:
        pass


__all__ = [
    "PostgreSQLPlatform",
]
