"""
Shared pytest fixtures for quarry tests.

This module provides:
- In-memory SQLite platforms (autocommit and explicit-transaction)
- A seeded ``users`` table for end-to-end queries
- A ``RecordingPlatform`` fixture for transaction call sequences
- Logging/settings cleanup for test isolation

Usage:
    def test_something(builder):
        builder.select().from_("users").get()
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from quarry.config.settings import get_settings
from quarry.factory import reset_connection_manager
from quarry.platforms.sqlite import SQLitePlatform
from quarry.query.builder import QueryBuilder
from tests._support.fakes import RecordingPlatform, seed_users, sqlite_profile


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_global_state() -> Iterator[None]:
    """Drop cached managers/settings and structlog config between tests."""
    yield
    reset_connection_manager()
    get_settings(_force_reload=True)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# SQLite fixtures
# =============================================================================


@pytest.fixture
def platform() -> Iterator[SQLitePlatform]:
    """Autocommitting in-memory SQLite platform."""
    p = SQLitePlatform(sqlite_profile())
    yield p
    p.disconnect()


@pytest.fixture
def tx_platform() -> Iterator[SQLitePlatform]:
    """In-memory SQLite platform with autocommit disabled."""
    p = SQLitePlatform(sqlite_profile("tx", autocommit=False))
    yield p
    p.disconnect()


@pytest.fixture
def builder(platform: SQLitePlatform) -> QueryBuilder:
    return platform.query_builder()


@pytest.fixture
def users_platform(platform: SQLitePlatform) -> SQLitePlatform:
    """Autocommit SQLite platform with a seeded ``users`` table."""
    seed_users(platform)
    return platform


@pytest.fixture
def recording() -> RecordingPlatform:
    """Recording platform with autocommit disabled."""
    return RecordingPlatform()
