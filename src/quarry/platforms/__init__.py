"""
Platforms: resolved database backends.

Manifesto:
    A builder is bound to exactly one platform for its lifetime. Platforms
    hide the driver (``sqlite3``, ``psycopg2``, ``mysql.connector``) behind
    one contract so the query pipeline never imports a driver itself.

Modules:
    base        Platform ABC and Transaction
    sqlite      SQLitePlatform (stdlib sqlite3)
    postgresql  PostgreSQLPlatform (psycopg2, optional extra)
    mysql       MySQLPlatform (mysql-connector-python, optional extra)
    registry    backend name → platform class
    manager     profile name → platform, with fallback resolution

Tags:
    quarry, database, platform, adapter-pattern
"""

from .base import Platform, Transaction
from .manager import ConnectionManager
from .mysql import MySQLPlatform
from .postgresql import PostgreSQLPlatform
from .registry import PlatformRegistry, platform_registry
from .sqlite import SQLitePlatform

__all__ = [
    "Platform",
    "Transaction",
    "SQLitePlatform",
    "PostgreSQLPlatform",
    "MySQLPlatform",
    "PlatformRegistry",
    "platform_registry",
    "ConnectionManager",
]
