"""Adaptive staleness check for cached range query results.

A cached result is only as precise as one bucket of the query that produced
it, so drift between the cached and requested range boundaries that stays
within one bucket is not worth a re-fetch. The bucket width is clamped by a
configured ceiling so coarse queries are never trusted past it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog

if TYPE_CHECKING:
    from .types import TimeRange

logger = structlog.get_logger(__name__)


def _ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC so naive and aware values can be compared."""
    if dt.tzinfo is None:
        # Assume naive datetime is UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _drift_seconds(a: datetime, b: datetime) -> int:
    # Truncated to whole seconds
    return int(abs((_ensure_utc(a) - _ensure_utc(b)).total_seconds()))


def seconds_per_bucket(
    max_data_points: int,
    duration_seconds: int,
    max_ttl_minutes: int,
) -> Optional[int]:
    """Return the drift tolerance in seconds for a resolution.

    Args:
        max_data_points: Points requested by the original query
        duration_seconds: Width of the originally requested range
        max_ttl_minutes: Ceiling on the tolerance

    Returns:
        ``min(duration_seconds // max_data_points, max_ttl_minutes * 60)``,
        or None when ``max_data_points`` is not positive and no tolerance
        can be derived.
    """
    if max_data_points <= 0:
        return None
    bucket = duration_seconds // max_data_points
    return min(bucket, max_ttl_minutes * 60)


def is_stale(
    cached: TimeRange,
    requested: TimeRange,
    max_ttl_minutes: int,
    max_data_points: int,
    duration_seconds: int,
) -> bool:
    """Decide whether a cached range can serve the requested range.

    Drift at either boundary strictly greater than the tolerance makes the
    entry stale. A drift equal to the tolerance is still fresh.

    Args:
        cached: Range the cached payload covers
        requested: Range of the incoming request
        max_ttl_minutes: Ceiling on the tolerance, in minutes
        max_data_points: Resolution proxy from the cache key
        duration_seconds: Resolution proxy from the cache key

    Returns:
        True if the entry must be treated as a miss
    """
    tolerance = seconds_per_bucket(max_data_points, duration_seconds, max_ttl_minutes)
    if tolerance is None:
        logger.debug("cache_compare_invalid_resolution", max_data_points=max_data_points)
        return True

    drift_to = _drift_seconds(cached.to, requested.to)
    drift_from = _drift_seconds(cached.from_, requested.from_)
    logger.debug(
        "cache_compare",
        incoming_to=requested.to.isoformat(),
        cached_to=cached.to.isoformat(),
        incoming_from=requested.from_.isoformat(),
        cached_from=cached.from_.isoformat(),
        seconds_per_bucket=tolerance,
    )
    return drift_to > tolerance or drift_from > tolerance
