from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

from .expiry import is_stale


@dataclass(frozen=True)
class TimeRange:
    from_: datetime
    to: datetime

    @property
    def duration_seconds(self) -> int:
        return int((self.to - self.from_).total_seconds())


@dataclass(frozen=True)
class CacheKey:
    """Identity of a cached result.

    ``max_data_points`` and ``duration_seconds`` stand in for the resolution
    of the original request; they are not tied to any particular time range.
    """

    query: str
    max_data_points: int
    duration_seconds: int

    @classmethod
    def for_query(cls, query: "DataQuery") -> "CacheKey":
        return cls(
            query=query.query,
            max_data_points=query.max_data_points,
            duration_seconds=query.time_range.duration_seconds,
        )

    def expired(
        self,
        cached: TimeRange,
        incoming: TimeRange,
        max_ttl_minutes: int,
    ) -> bool:
        """Check whether a cached range has drifted too far from ``incoming``."""
        return is_stale(
            cached,
            incoming,
            max_ttl_minutes=max_ttl_minutes,
            max_data_points=self.max_data_points,
            duration_seconds=self.duration_seconds,
        )


@dataclass(frozen=True)
class CacheEntry:
    tables: Sequence[Any]
    time_range: TimeRange


@dataclass(frozen=True)
class DataQuery:
    ref_id: str
    query: str
    max_data_points: int
    time_range: TimeRange


@dataclass
class QueryResponse:
    tables: Sequence[Any] = field(default_factory=list)
    error: Optional[str] = None
