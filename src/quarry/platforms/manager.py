"""
Connection manager: profile name → resolved platform.

Resolution rules:
    1. Look up the named profile (the config's default when no name is given).
    2. If its backend is registered and the driver is importable, use it.
    3. Otherwise resolve the profile's ``fallback`` profile the same way.
    4. If neither resolves, raise :class:`~quarry.errors.ConfigError`.

Each profile resolves to one platform (one connection) per manager; later
requests for the same name get the same platform back. This is not a pool:
the manager never hands one connection to two profiles and never opens a
second connection for the same profile.

Tags:
    quarry, connections, fallback, configuration
"""

from __future__ import annotations

from quarry.config.profiles import ConnectionConfig, ConnectionProfile
from quarry.errors import ConfigError
from quarry.logging import get_logger

from .base import Platform
from .registry import PlatformRegistry, platform_registry

logger = get_logger(__name__)


class ConnectionManager:
    """Resolves connection profiles to platforms."""

    def __init__(self, config: ConnectionConfig, registry: PlatformRegistry | None = None):
        self._config = config
        self._registry = registry or platform_registry
        self._platforms: dict[str, Platform] = {}

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    def get_profile(self, name: str | None = None) -> ConnectionProfile:
        """Profile by name (default profile when None)."""
        return self._config.get(name)

    def get_fallback_id(self, name: str | None = None) -> str | None:
        """Name of the profile used when ``name`` cannot be resolved."""
        return self.get_profile(name).fallback

    def _create(self, profile: ConnectionProfile) -> Platform | None:
        platform_class = self._registry.get(profile.backend)
        if platform_class is None or not platform_class.is_available():
            return None
        return platform_class(profile)

    def get_platform(self, connection_id: str | None = None) -> Platform:
        """Resolve ``connection_id`` (or the default profile) to a platform.

        Raises:
            ConfigError: Neither the profile nor its fallback has a usable backend.
        """
        profile = self.get_profile(connection_id)
        if profile.name in self._platforms:
            return self._platforms[profile.name]

        platform = self._create(profile)
        if platform is None:
            fallback_id = profile.fallback
            if fallback_id is None:
                raise ConfigError(
                    f"No usable backend for connection '{profile.name}' "
                    f"(backend '{profile.backend}') and no fallback configured"
                ).with_context(connection=profile.name, backend=profile.backend)

            fallback = self.get_profile(fallback_id)
            logger.warning(
                "platform_fallback",
                connection=profile.name,
                backend=profile.backend,
                fallback=fallback.name,
                fallback_backend=fallback.backend,
            )
            platform = self._create(fallback)
            if platform is None:
                raise ConfigError(
                    f"No usable backend for connection '{profile.name}': "
                    f"backend '{profile.backend}' and fallback '{fallback.name}' "
                    f"(backend '{fallback.backend}') are both unavailable"
                ).with_context(connection=profile.name, backend=profile.backend)

        logger.info(
            "platform_resolved",
            connection=profile.name,
            backend=platform.name,
        )
        self._platforms[profile.name] = platform
        return platform

    def close_all(self) -> None:
        """Disconnect every platform resolved so far."""
        platforms, self._platforms = list(self._platforms.values()), {}
        for platform in platforms:
            platform.disconnect()


__all__ = [
    "ConnectionManager",
]
