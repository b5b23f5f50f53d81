"""Prometheus metric definitions for the query result cache.

Counters and gauges here describe cache effectiveness per data-source
instance. Recording is best-effort: a failure to record never affects the
query path.
"""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    CollectorRegistry,
    REGISTRY,
)
import structlog

logger = structlog.get_logger(__name__)

# Default registry (can be overridden for testing)
_registry: CollectorRegistry = REGISTRY


def get_metrics_registry() -> CollectorRegistry:
    """Get the current metrics registry.

    Returns:
        The CollectorRegistry used for all metrics
    """
    return _registry


# =============================================================================
# Counter Metrics
# =============================================================================

QUERY_CACHE_REQUESTS_TOTAL = Counter(
    "query_cache_requests_total",
    "Total number of query cache lookups",
    labelnames=["result", "instance"],
    registry=_registry,
)
"""Counter for cache lookups.

Labels:
    result: hit|miss|stale
    instance: Data-source instance identifier
"""

QUERY_CACHE_EVICTIONS_TOTAL = Counter(
    "query_cache_evictions_total",
    "Total number of entries removed from the query cache",
    labelnames=["reason", "instance"],
    registry=_registry,
)
"""Counter for evictions.

Labels:
    reason: capacity|expired
    instance: Data-source instance identifier
"""

# =============================================================================
# Gauge Metrics
# =============================================================================

QUERY_CACHE_ENTRIES = Gauge(
    "query_cache_entries",
    "Current number of entries in the query cache",
    labelnames=["instance"],
    registry=_registry,
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_cache_request(result: str, instance: str = "default") -> None:
    """Record a cache lookup outcome.

    Args:
        result: hit|miss|stale
        instance: Data-source instance identifier
    """
    try:
        QUERY_CACHE_REQUESTS_TOTAL.labels(result=result, instance=instance).inc()
    except Exception as e:
        logger.warning("metrics_record_failed", metric="query_cache_requests_total", error=str(e))


def record_cache_eviction(reason: str, instance: str = "default", count: int = 1) -> None:
    """Record entries removed from the cache.

    Args:
        reason: capacity|expired
        instance: Data-source instance identifier
        count: Number of entries removed
    """
    if count <= 0:
        return
    try:
        QUERY_CACHE_EVICTIONS_TOTAL.labels(reason=reason, instance=instance).inc(count)
    except Exception as e:
        logger.warning("metrics_record_failed", metric="query_cache_evictions_total", error=str(e))


def set_cache_entries(size: int, instance: str = "default") -> None:
    try:
        QUERY_CACHE_ENTRIES.labels(instance=instance).set(size)
    except Exception as e:
        logger.warning("metrics_record_failed", metric="query_cache_entries", error=str(e))
