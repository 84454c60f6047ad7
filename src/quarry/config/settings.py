"""
Environment-driven settings for quarry.

``QuarrySettings`` reads ``QUARRY_*`` environment variables (and a ``.env``
file) to locate the connection profile file, the default profile and the
logging setup. ``load_connection_config()`` turns those settings into a
validated :class:`~quarry.config.profiles.ConnectionConfig`.

Tags:
    quarry, configuration, settings, pydantic, environment
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .profiles import ConnectionConfig


class QuarrySettings(BaseSettings):
    """quarry configuration.

    Fields
    ──────
    config_file        : TOML file holding ``[connections.*]`` profiles
    default_connection : Overrides the file's ``default`` profile name
    log_level          : Structlog log level
    log_format         : ``json``, ``console`` or ``auto`` (json when not a tty)
    """

    model_config = SettingsConfigDict(
        env_prefix="QUARRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connections ──────────────────────────────────────────────
    config_file: Path | None = Field(default=None, description="Connection profile file (TOML)")
    default_connection: str | None = Field(default=None)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto")

    def json_logs(self) -> bool | None:
        """Map ``log_format`` onto ``configure_logging(json_format=...)``."""
        if self.log_format == "json":
            return True
        if self.log_format == "console":
            return False
        return None


_settings_cache: dict[str, QuarrySettings] = {}


def get_settings(*, _force_reload: bool = False) -> QuarrySettings:
    """Load, validate and cache :class:`QuarrySettings`."""
    if _force_reload or "settings" not in _settings_cache:
        _settings_cache["settings"] = QuarrySettings()
    return _settings_cache["settings"]


def load_connection_config(settings: QuarrySettings | None = None) -> ConnectionConfig:
    """Resolve the connection config described by ``settings``.

    Without a config file, a single in-memory SQLite profile is used.
    """
    settings = settings or get_settings()
    if settings.config_file is None:
        config = ConnectionConfig.in_memory()
    else:
        config = ConnectionConfig.from_toml(settings.config_file)

    if settings.default_connection and settings.default_connection != config.default:
        config = ConnectionConfig.from_dict(
            {
                "default": settings.default_connection,
                "connections": {
                    name: profile.model_dump(exclude={"name"}, mode="python")
                    for name, profile in config.connections.items()
                },
            }
        )
    return config


__all__ = [
    "QuarrySettings",
    "get_settings",
    "load_connection_config",
]
