"""Result cache for time-series range queries."""

from .cache import BoundedTTLCache, CacheStats, new_cache
from .config import InstanceConfig, Settings, get_settings, load_settings, parse_instance_config
from .datasource import (
    CachedQueryExecutor,
    DataSourceInstance,
    InstanceManager,
    QueryExecutor,
    query_data,
)
from .errors import AppError, ConfigurationError, ErrorCode, QueryExecutionError
from .expiry import is_stale, seconds_per_bucket
from .types import CacheEntry, CacheKey, DataQuery, QueryResponse, TimeRange

__all__ = [
    "AppError",
    "BoundedTTLCache",
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "CachedQueryExecutor",
    "ConfigurationError",
    "DataQuery",
    "DataSourceInstance",
    "ErrorCode",
    "InstanceConfig",
    "InstanceManager",
    "QueryExecutionError",
    "QueryExecutor",
    "QueryResponse",
    "Settings",
    "TimeRange",
    "get_settings",
    "is_stale",
    "load_settings",
    "new_cache",
    "parse_instance_config",
    "query_data",
    "seconds_per_bucket",
]
