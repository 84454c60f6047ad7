"""
quarry - fluent SQL query building, binding and execution.

Build SQL with chained calls, bind values through named placeholders and
run the result on SQLite, PostgreSQL or MySQL::

    from quarry import get_query_builder

    builder = get_query_builder()
    builder.select(["id", "name"]).from_("users").where("id", 5)
    builder.get_query()          # 'SELECT id,name FROM users WHERE id=:id'
    rows = builder.get()         # Collection of Row objects
"""

__version__ = "0.1.0"

from quarry.config import ConnectionConfig, ConnectionProfile, QuarrySettings, get_settings
from quarry.errors import (
    ConfigError,
    MappingError,
    ParameterMismatchError,
    QuarryError,
    QueryError,
    QueryStateError,
    UnbindableValueError,
)
from quarry.factory import connect, get_connection_manager, get_query_builder
from quarry.logging import configure_logging, get_logger
from quarry.platforms import ConnectionManager, Platform
from quarry.query import ParameterBag, QueryBuilder, QueryType, StatementResult
from quarry.result import Collection, ResultMapper, Row

__all__ = [
    "__version__",
    "Collection",
    "ConfigError",
    "ConnectionConfig",
    "ConnectionManager",
    "ConnectionProfile",
    "MappingError",
    "ParameterBag",
    "ParameterMismatchError",
    "Platform",
    "QuarryError",
    "QuarrySettings",
    "QueryBuilder",
    "QueryError",
    "QueryStateError",
    "QueryType",
    "ResultMapper",
    "Row",
    "StatementResult",
    "UnbindableValueError",
    "configure_logging",
    "connect",
    "get_connection_manager",
    "get_logger",
    "get_query_builder",
    "get_settings",
]
