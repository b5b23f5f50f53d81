"""Observability package for Prometheus cache metrics."""

from .metrics import (
    QUERY_CACHE_REQUESTS_TOTAL,
    QUERY_CACHE_EVICTIONS_TOTAL,
    QUERY_CACHE_ENTRIES,
    record_cache_request,
    record_cache_eviction,
    set_cache_entries,
    get_metrics_registry,
)

__all__ = [
    "QUERY_CACHE_REQUESTS_TOTAL",
    "QUERY_CACHE_EVICTIONS_TOTAL",
    "QUERY_CACHE_ENTRIES",
    "record_cache_request",
    "record_cache_eviction",
    "set_cache_entries",
    "get_metrics_registry",
]
