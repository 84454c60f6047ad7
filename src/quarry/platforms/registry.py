"""Platform registry.

Manifesto:
    Consumers should never hard-code platform class names. The registry
    maps backend identifiers from connection profiles to platform classes;
    the connection manager asks it which class serves a profile.

Features:
    - ``PlatformRegistry`` with pre-registered defaults
    - ``register()`` for custom / third-party platforms
    - ``create()``: profile → platform instance

Tags:
    quarry, database, registry, factory

Doc-Types:
    api-reference
"""

from __future__ import annotations

from quarry.config.profiles import ConnectionProfile
from quarry.errors import ConfigError

from .base import Platform
from .mysql import MySQLPlatform
from .postgresql import PostgreSQLPlatform
from .sqlite import SQLitePlatform


class PlatformRegistry:
    """
    Registry of platform classes by backend name.

    Pre-registered platforms:
    - ``sqlite``: :class:`SQLitePlatform`
    - ``postgresql`` / ``postgres``: :class:`PostgreSQLPlatform`
    - ``mysql``: :class:`MySQLPlatform`
    """

    def __init__(self):
        self._platforms: dict[str, type[Platform]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._platforms["sqlite"] = SQLitePlatform
        self._platforms["postgresql"] = PostgreSQLPlatform
        self._platforms["postgres"] = PostgreSQLPlatform  # Alias
        self._platforms["mysql"] = MySQLPlatform

    def register(self, name: str, platform_class: type[Platform]) -> None:
        """Register a platform class for a backend name."""
        self._platforms[name.lower()] = platform_class

    def get(self, name: str) -> type[Platform] | None:
        """Platform class for ``name``, or None when unknown."""
        return self._platforms.get(name.lower())

    def create(self, profile: ConnectionProfile) -> Platform:
        """Instantiate the platform serving ``profile``."""
        platform_class = self.get(profile.backend)
        if platform_class is None:
            raise ConfigError(f"Unknown backend: {profile.backend}")
        return platform_class(profile)

    def list_platforms(self) -> list[str]:
        return sorted(self._platforms)


# Global registry
platform_registry = PlatformRegistry()


__all__ = [
    "PlatformRegistry",
    "platform_registry",
]
