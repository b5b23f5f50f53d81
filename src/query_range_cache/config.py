"""Configuration management for the query result cache."""

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError
import structlog

from .errors import ConfigurationError

# Cache configuration defaults
DEFAULT_CACHE_MAX_ENTRIES = 100
DEFAULT_CACHE_TTL_MINUTES = 10

TRUTHY_VALUES = {"1", "true", "yes", "on"}

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Settings:
    """Process-wide cache defaults loaded from environment variables."""

    app_env: str
    query_cache_enabled: bool
    query_cache_max_entries: int
    query_cache_ttl_minutes: int
    # Ceiling on drift tolerance used by the expiry check
    query_cache_max_ttl_minutes: int


def load_settings() -> Settings:
    """
    Load settings from environment variables.

    Returns:
        Settings instance with all configuration values

    Raises:
        ValueError: If a numeric variable is not a valid integer
    """
    load_dotenv()

    app_env = os.getenv("APP_ENV", "development").strip().lower()
    query_cache_enabled = (
        os.getenv("QUERY_CACHE_ENABLED", "true").strip().lower() in TRUTHY_VALUES
    )

    try:
        query_cache_max_entries = int(
            os.getenv("QUERY_CACHE_MAX_ENTRIES", str(DEFAULT_CACHE_MAX_ENTRIES))
        )
        query_cache_ttl_minutes = int(
            os.getenv("QUERY_CACHE_TTL_MINUTES", str(DEFAULT_CACHE_TTL_MINUTES))
        )
    except ValueError as exc:
        raise ValueError(
            "QUERY_CACHE_MAX_ENTRIES and QUERY_CACHE_TTL_MINUTES "
            "must be valid integers. Check your .env file."
        ) from exc

    raw_max_ttl = os.getenv("QUERY_CACHE_MAX_TTL_MINUTES")
    if raw_max_ttl:
        try:
            query_cache_max_ttl_minutes = int(raw_max_ttl)
        except ValueError as exc:
            raise ValueError(
                "QUERY_CACHE_MAX_TTL_MINUTES must be a valid integer."
            ) from exc
    else:
        query_cache_max_ttl_minutes = query_cache_ttl_minutes

    if query_cache_enabled and (query_cache_max_entries < 1 or query_cache_ttl_minutes < 1):
        logger.warning(
            "query_cache_effectively_disabled",
            max_entries=query_cache_max_entries,
            ttl_minutes=query_cache_ttl_minutes,
        )

    return Settings(
        app_env=app_env,
        query_cache_enabled=query_cache_enabled,
        query_cache_max_entries=query_cache_max_entries,
        query_cache_ttl_minutes=query_cache_ttl_minutes,
        query_cache_max_ttl_minutes=query_cache_max_ttl_minutes,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once
    from environment variables.

    Returns:
        Cached Settings instance
    """
    return load_settings()


class InstanceConfig(BaseModel):
    """Cache section of a data-source instance's JSON settings.

    Connection fields (account, warehouse, ...) share the same document and
    are ignored here.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    cache_enabled: bool = Field(True, alias="cacheEnabled")
    cache_max_entries: int = Field(DEFAULT_CACHE_MAX_ENTRIES, alias="cacheMaxEntries")
    cache_ttl_minutes: int = Field(DEFAULT_CACHE_TTL_MINUTES, alias="cacheTtlMinutes")
    cache_max_ttl_minutes: int = Field(DEFAULT_CACHE_TTL_MINUTES, alias="cacheMaxTtlMinutes")


def parse_instance_config(
    raw: Union[bytes, str, dict[str, Any], None],
    settings: Optional[Settings] = None,
) -> InstanceConfig:
    """
    Parse per-instance JSON settings, filling gaps from environment settings.

    Args:
        raw: JSON document (bytes or str) or an already decoded mapping
        settings: Defaults for keys the document omits

    Returns:
        Validated InstanceConfig

    Raises:
        ConfigurationError: If the document is not a JSON object or a cache
            field has the wrong type
    """
    settings = settings or get_settings()

    if raw is None or raw == b"" or raw == "":
        data: Any = {}
    elif isinstance(raw, (bytes, str)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ConfigurationError("settings must be valid JSON") from exc
    else:
        data = raw
    if not isinstance(data, dict):
        raise ConfigurationError("settings must be a JSON object")

    data = dict(data)
    explicit_ttl = "cacheTtlMinutes" in data
    data.setdefault("cacheEnabled", settings.query_cache_enabled)
    data.setdefault("cacheMaxEntries", settings.query_cache_max_entries)
    data.setdefault("cacheTtlMinutes", settings.query_cache_ttl_minutes)
    if "cacheMaxTtlMinutes" not in data:
        # Falls back to the instance's own TTL when only that is set
        if explicit_ttl:
            data["cacheMaxTtlMinutes"] = data["cacheTtlMinutes"]
        else:
            data["cacheMaxTtlMinutes"] = settings.query_cache_max_ttl_minutes

    try:
        return InstanceConfig.model_validate(data)
    except ValidationError as exc:
        fields = {".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()}
        raise ConfigurationError("invalid cache settings", details=fields) from exc
