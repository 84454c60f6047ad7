"""Tests for ``quarry.config``: connection profiles and settings."""

from __future__ import annotations

import textwrap

import pytest
from pydantic import ValidationError as PydanticValidationError

from quarry.config import (
    ConnectionConfig,
    ConnectionProfile,
    QuarrySettings,
    get_settings,
    load_connection_config,
)
from quarry.errors import InvalidConfigError, MissingConfigError

CONFIG_TOML = textwrap.dedent(
    """
    default = "main"

    [connections.main]
    backend = "MySQL"
    host = "db.internal"
    port = 3306
    username = "app"
    password = "s3cret"
    database = "shop"
    auto_commit = true
    alt = "local"

    [connections.local]
    backend = "sqlite"
    path = ":memory:"
    """
)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "connections.toml"
    path.write_text(CONFIG_TOML, encoding="utf-8")
    return path


class TestConnectionProfile:
    def test_defaults(self):
        profile = ConnectionProfile(backend="sqlite")
        assert profile.name == "default"
        assert profile.charset == "utf8mb4"
        assert profile.autocommit is False
        assert profile.fallback is None

    def test_backend_normalized(self):
        assert ConnectionProfile(backend="  PostgreSQL ").backend == "postgresql"

    def test_empty_backend_rejected(self):
        with pytest.raises(PydanticValidationError):
            ConnectionProfile(backend=" ")

    def test_unknown_keys_rejected(self):
        with pytest.raises(PydanticValidationError):
            ConnectionProfile(backend="sqlite", hostname="x")

    def test_password_is_secret(self):
        profile = ConnectionProfile(backend="mysql", password="hunter2")
        assert "hunter2" not in repr(profile)
        assert profile.password_value() == "hunter2"
        assert ConnectionProfile(backend="mysql").password_value() is None

    def test_frozen(self):
        profile = ConnectionProfile(backend="sqlite")
        with pytest.raises(PydanticValidationError):
            profile.backend = "mysql"


class TestConnectionConfig:
    def test_from_toml(self, config_file):
        config = ConnectionConfig.from_toml(config_file)
        assert config.default == "main"
        assert config.names() == ["main", "local"]

        main = config.get()
        assert main.name == "main"
        assert main.backend == "mysql"
        assert main.autocommit is True
        assert main.fallback == "local"
        assert config.get("local").path == ":memory:"

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingConfigError):
            ConnectionConfig.from_toml(tmp_path / "absent.toml")

    def test_unknown_profile(self):
        with pytest.raises(MissingConfigError) as exc_info:
            ConnectionConfig.in_memory().get("replica")
        assert exc_info.value.key == "connections.replica"

    def test_undefined_fallback(self):
        with pytest.raises(InvalidConfigError, match="undefined profile 'ghost'"):
            ConnectionConfig.from_dict(
                {"default": "a", "connections": {"a": {"backend": "sqlite", "fallback": "ghost"}}}
            )

    def test_undefined_default(self):
        with pytest.raises(InvalidConfigError):
            ConnectionConfig.from_dict({"default": "b", "connections": {"a": {"backend": "sqlite"}}})

    def test_in_memory(self):
        profile = ConnectionConfig.in_memory().get()
        assert profile.backend == "sqlite"
        assert profile.path == ":memory:"
        assert profile.autocommit is True


class TestSettings:
    def test_env_prefix(self, monkeypatch, config_file):
        monkeypatch.setenv("QUARRY_CONFIG_FILE", str(config_file))
        monkeypatch.setenv("QUARRY_LOG_FORMAT", "json")
        settings = QuarrySettings()
        assert settings.config_file == config_file
        assert settings.json_logs() is True

    def test_log_format_mapping(self):
        assert QuarrySettings(log_format="console").json_logs() is False
        assert QuarrySettings(log_format="auto").json_logs() is None

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
        assert get_settings(_force_reload=True) is not None

    def test_load_without_file(self):
        config = load_connection_config(QuarrySettings(config_file=None))
        assert config.get().backend == "sqlite"

    def test_load_with_default_override(self, config_file):
        settings = QuarrySettings(config_file=config_file, default_connection="local")
        config = load_connection_config(settings)
        assert config.default == "local"
        assert config.get().backend == "sqlite"
        assert config.get("main").password_value() == "s3cret"
        assert config.get("main").fallback == "local"

    def test_load_from_environment(self, monkeypatch, config_file):
        monkeypatch.setenv("QUARRY_CONFIG_FILE", str(config_file))
        config = load_connection_config(get_settings(_force_reload=True))
        assert config.default == "main"
