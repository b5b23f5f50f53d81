"""pytest fixtures for query range cache tests."""

import os

# Set environment variables BEFORE any imports
os.environ.setdefault("APP_ENV", "test")

from datetime import datetime, timedelta, timezone

import pytest

from query_range_cache.config import Settings


@pytest.fixture
def base_time() -> datetime:
    """Provide a fixed, timezone-aware reference instant."""
    return datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def six_hours() -> timedelta:
    return timedelta(hours=6)


@pytest.fixture
def test_settings() -> Settings:
    """Environment-independent settings."""
    return Settings(
        app_env="test",
        query_cache_enabled=True,
        query_cache_max_entries=100,
        query_cache_ttl_minutes=10,
        query_cache_max_ttl_minutes=10,
    )


@pytest.fixture
def fake_clock(monkeypatch: pytest.MonkeyPatch) -> dict[str, float]:
    """Replace the cache's monotonic clock with a controllable value."""
    now = {"value": 1000.0}

    def fake_monotonic() -> float:
        return now["value"]

    monkeypatch.setattr("query_range_cache.cache.monotonic", fake_monotonic)
    return now
