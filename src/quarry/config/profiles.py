"""
Named connection profiles.

A profile describes one backend connection: which platform to use, where
it lives, credentials, charset/collation, whether the backend runs in
autocommit mode, and an optional fallback profile used when the primary
backend cannot be resolved (unknown backend or driver not installed).

Example configuration (``quarry.toml``)::

    default = "main"

    [connections.main]
    backend = "mysql"
    host = "localhost"
    username = "app"
    password = "secret"
    database = "app"
    charset = "utf8mb4"
    autocommit = false
    fallback = "local"

    [connections.local]
    backend = "sqlite"
    path = "data/app.db"
    autocommit = true

The legacy keys ``auto_commit`` and ``alt`` are accepted as aliases of
``autocommit`` and ``fallback``.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)

from quarry.errors import InvalidConfigError, MissingConfigError


class ConnectionProfile(BaseModel):
    """A single named connection profile."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str = "default"
    backend: str

    # Network backends
    host: str = "localhost"
    port: int | None = None
    username: str | None = None
    password: SecretStr | None = None
    database: str = ""

    # SQLite
    path: str | None = None

    charset: str = "utf8mb4"
    collation: str | None = None

    autocommit: bool = Field(
        default=False,
        validation_alias=AliasChoices("autocommit", "auto_commit"),
    )
    fallback: str | None = Field(
        default=None,
        validation_alias=AliasChoices("fallback", "alt"),
    )

    # Extra options (driver-specific keyword arguments)
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("backend")
    @classmethod
    def _normalize_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("backend must not be empty")
        return value

    def password_value(self) -> str | None:
        """Plain-text password for driver calls."""
        return self.password.get_secret_value() if self.password else None


class ConnectionConfig(BaseModel):
    """All connection profiles plus the name of the default one."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default: str = "default"
    connections: dict[str, ConnectionProfile] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _name_profiles(cls, data: Any) -> Any:
        """Profiles take their ``name`` from their key in ``connections``."""
        if isinstance(data, dict) and isinstance(data.get("connections"), dict):
            named = {}
            for key, profile in data["connections"].items():
                if isinstance(profile, dict):
                    profile = {**profile, "name": key}
                named[key] = profile
            data = {**data, "connections": named}
        return data

    @model_validator(mode="after")
    def _check_references(self) -> ConnectionConfig:
        if self.connections and self.default not in self.connections:
            raise ValueError(f"default profile '{self.default}' is not defined")
        for profile in self.connections.values():
            if profile.fallback is not None and profile.fallback not in self.connections:
                raise ValueError(
                    f"profile '{profile.name}' falls back to undefined profile '{profile.fallback}'"
                )
        return self

    # ── Lookup ───────────────────────────────────────────────────

    def get(self, name: str | None = None) -> ConnectionProfile:
        """Return the named profile (the default profile when ``name`` is None)."""
        key = name or self.default
        try:
            return self.connections[key]
        except KeyError:
            raise MissingConfigError(
                f"connections.{key}", f"Connection profile '{key}' is not defined"
            ) from None

    def names(self) -> list[str]:
        return list(self.connections)

    # ── Factories ────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConnectionConfig:
        """Build a config from a plain mapping, translating validation failures."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise InvalidConfigError("connections", data, f"Invalid connection configuration: {exc}") from exc

    @classmethod
    def from_toml(cls, path: Path) -> ConnectionConfig:
        """Load a config from a ``.toml`` file."""
        if not path.is_file():
            raise MissingConfigError(str(path), f"Connection config file not found: {path}")
        data = tomllib.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(data)

    @classmethod
    def in_memory(cls) -> ConnectionConfig:
        """Single autocommitting in-memory SQLite profile named ``default``."""
        return cls.from_dict(
            {
                "default": "default",
                "connections": {
                    "default": {"backend": "sqlite", "path": ":memory:", "autocommit": True},
                },
            }
        )


__all__ = [
    "ConnectionProfile",
    "ConnectionConfig",
]
