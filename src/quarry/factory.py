"""
Entry points: obtain a query builder bound to a resolved platform.

Usage::

    from quarry import get_query_builder

    users = get_query_builder("main").select(["id", "name"]).from_("users").get()

Without an explicit ``config`` the connection profiles come from
``QuarrySettings`` (``QUARRY_CONFIG_FILE``), falling back to a single
in-memory SQLite profile. The manager built from settings is cached so
repeated calls for one profile share its connection.
"""

from __future__ import annotations

from quarry.config.profiles import ConnectionConfig
from quarry.config.settings import load_connection_config
from quarry.platforms.manager import ConnectionManager
from quarry.query.builder import QueryBuilder

_manager_cache: dict[str, ConnectionManager] = {}


def get_connection_manager(config: ConnectionConfig | None = None) -> ConnectionManager:
    """Manager for ``config``, or the cached manager built from settings."""
    if config is not None:
        return ConnectionManager(config)
    if "default" not in _manager_cache:
        _manager_cache["default"] = ConnectionManager(load_connection_config())
    return _manager_cache["default"]


def reset_connection_manager() -> None:
    """Disconnect and drop the cached settings-based manager."""
    manager = _manager_cache.pop("default", None)
    if manager is not None:
        manager.close_all()


def get_query_builder(
    connection_id: str | None = None,
    *,
    config: ConnectionConfig | None = None,
) -> QueryBuilder:
    """New builder bound to the platform resolved for ``connection_id``.

    Raises:
        ConfigError: The profile and its fallback have no usable backend.
    """
    return get_connection_manager(config).get_platform(connection_id).query_builder()


def connect(
    connection_id: str | None = None,
    *,
    config: ConnectionConfig | None = None,
) -> QueryBuilder:
    """Like ``get_query_builder`` but opens the connection right away."""
    platform = get_connection_manager(config).get_platform(connection_id)
    platform.connect()
    return platform.query_builder()


__all__ = [
    "connect",
    "get_connection_manager",
    "get_query_builder",
    "reset_connection_manager",
]
