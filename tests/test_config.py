"""Tests for configuration loading and instance settings parsing."""

from __future__ import annotations

import json

import pytest

from query_range_cache.config import (
    DEFAULT_CACHE_MAX_ENTRIES,
    InstanceConfig,
    get_settings,
    load_settings,
    parse_instance_config,
)
from query_range_cache.errors import ConfigurationError, ErrorCode


def _clear_cache_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "QUERY_CACHE_ENABLED",
        "QUERY_CACHE_MAX_ENTRIES",
        "QUERY_CACHE_TTL_MINUTES",
        "QUERY_CACHE_MAX_TTL_MINUTES",
    ):
        monkeypatch.delenv(name, raising=False)


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_cache_env(monkeypatch)

    settings = load_settings()

    assert settings.query_cache_enabled is True
    assert settings.query_cache_max_entries == DEFAULT_CACHE_MAX_ENTRIES
    assert settings.query_cache_ttl_minutes == 10
    assert settings.query_cache_max_ttl_minutes == settings.query_cache_ttl_minutes


def test_load_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_cache_env(monkeypatch)
    monkeypatch.setenv("QUERY_CACHE_ENABLED", "false")
    monkeypatch.setenv("QUERY_CACHE_MAX_ENTRIES", "25")
    monkeypatch.setenv("QUERY_CACHE_TTL_MINUTES", "30")
    monkeypatch.setenv("QUERY_CACHE_MAX_TTL_MINUTES", "5")

    settings = load_settings()

    assert settings.query_cache_enabled is False
    assert settings.query_cache_max_entries == 25
    assert settings.query_cache_ttl_minutes == 30
    assert settings.query_cache_max_ttl_minutes == 5


def test_load_settings_rejects_non_integer(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_cache_env(monkeypatch)
    monkeypatch.setenv("QUERY_CACHE_MAX_ENTRIES", "lots")

    with pytest.raises(ValueError) as excinfo:
        load_settings()

    assert "QUERY_CACHE_MAX_ENTRIES" in str(excinfo.value)


def test_load_settings_accepts_degenerate_values(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_cache_env(monkeypatch)
    monkeypatch.setenv("QUERY_CACHE_MAX_ENTRIES", "0")

    settings = load_settings()

    assert settings.query_cache_max_entries == 0


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_cache_env(monkeypatch)
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


class TestParseInstanceConfig:
    """Tests for per-instance JSON settings."""

    def test_camel_case_document(self, test_settings) -> None:
        raw = json.dumps(
            {
                "account": "acme",
                "warehouse": "COMPUTE_WH",
                "cacheEnabled": True,
                "cacheMaxEntries": 50,
                "cacheTtlMinutes": 15,
                "cacheMaxTtlMinutes": 3,
            }
        ).encode()

        config = parse_instance_config(raw, test_settings)

        assert config == InstanceConfig(
            cache_enabled=True,
            cache_max_entries=50,
            cache_ttl_minutes=15,
            cache_max_ttl_minutes=3,
        )

    def test_missing_keys_fall_back_to_settings(self, test_settings) -> None:
        config = parse_instance_config('{"account": "acme"}', test_settings)

        assert config.cache_enabled is True
        assert config.cache_max_entries == test_settings.query_cache_max_entries
        assert config.cache_ttl_minutes == test_settings.query_cache_ttl_minutes
        assert config.cache_max_ttl_minutes == test_settings.query_cache_max_ttl_minutes

    def test_max_ttl_follows_instance_ttl(self, test_settings) -> None:
        config = parse_instance_config({"cacheTtlMinutes": 42}, test_settings)
        assert config.cache_max_ttl_minutes == 42

    def test_empty_document(self, test_settings) -> None:
        config = parse_instance_config(b"", test_settings)
        assert config.cache_max_entries == test_settings.query_cache_max_entries

    def test_invalid_json(self, test_settings) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            parse_instance_config("{not json", test_settings)

        assert excinfo.value.code == ErrorCode.CONFIGURATION_ERROR

    def test_non_object_document(self, test_settings) -> None:
        with pytest.raises(ConfigurationError):
            parse_instance_config("[1, 2]", test_settings)

    def test_wrong_field_type(self, test_settings) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            parse_instance_config({"cacheMaxEntries": "many"}, test_settings)

        assert "cacheMaxEntries" in excinfo.value.details
