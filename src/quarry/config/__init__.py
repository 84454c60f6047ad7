"""Connection profiles and environment settings.

Manifesto:
    Every builder starts from a named connection profile. Without one
    validated source, each caller would parse hosts, credentials and
    fallbacks its own way.

    * **Profiles** -- ``ConnectionProfile`` / ``ConnectionConfig`` (Pydantic)
    * **TOML files** -- ``[connections.<name>]`` tables, loaded with ``tomllib``
    * **Settings** -- ``QuarrySettings`` (pydantic-settings, ``QUARRY_*``), cached

Quick start::

    from quarry.config import load_connection_config

    config = load_connection_config()
    config.get("main").backend     # "mysql"

Architecture::

    profiles.py   ConnectionProfile + ConnectionConfig (from_dict / from_toml)
    settings.py   QuarrySettings + get_settings() cache + load_connection_config()

Guardrails:
    ❌ Reading ``QUARRY_*`` environment variables ad-hoc
    ✅ ``get_settings()`` from the cached singleton

Tags:
    quarry, configuration, settings, profiles, pydantic, TOML

Doc-Types:
    package-overview, module-index
"""

from .profiles import ConnectionConfig, ConnectionProfile
from .settings import QuarrySettings, get_settings, load_connection_config

__all__ = [
    "ConnectionConfig",
    "ConnectionProfile",
    "QuarrySettings",
    "get_settings",
    "load_connection_config",
]
