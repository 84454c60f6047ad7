"""MySQL platform.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **format** (``%s``) placeholder style.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install quarry[mysql]

The driver is imported at ``connect()`` time; without it the platform
reports itself unavailable and the connection manager falls back.
"""

from __future__ import annotations

from typing import Any

from quarry.errors import DatabaseConnectionError
from quarry.protocols import Connection

from .base import Platform


class MySQLPlatform(Platform):
    """MySQL / MariaDB platform."""

    backend = "mysql"
    driver_module = "mysql.connector"

    def _open(self) -> Any:
        import mysql.connector

        profile = self.profile
        kwargs: dict[str, Any] = {
            "host": profile.host,
            "port": profile.port or 3306,
            "database": profile.database,
            "user": profile.username,
            "password": profile.password_value(),
            "charset": profile.charset,
            "autocommit": profile.autocommit,
        }
        if profile.collation:
            kwargs["collation"] = profile.collation
        kwargs.update(profile.options)

        try:
            return mysql.connector.connect(**kwargs)
        except mysql.connector.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ).with_context(backend=self.backend, connection=profile.name) from e

    def driver_errors(self) -> tuple[type[BaseException], ...]:
        import mysql.connector

        return (mysql.connector.Error,)

    def _begin(self, connection: Connection) -> None:
        connection.start_transaction()


__all__ = [
    "MySQLPlatform",
]
