"""Bounded LRU cache with per-entry TTL for range query results."""

from __future__ import annotations

from collections import OrderedDict
import hashlib
from dataclasses import dataclass
from threading import Lock
from time import monotonic
from typing import Optional

import structlog

from .observability.metrics import record_cache_eviction, set_cache_entries
from .types import CacheEntry, CacheKey

logger = structlog.get_logger(__name__)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0


@dataclass
class _Slot:
    entry: CacheEntry
    expires_at: float


class BoundedTTLCache:
    """Thread-safe size-bounded cache with absolute per-entry expiry.

    Entries are evicted least-recently-used first when the store is over
    capacity, and become unreachable ``ttl_minutes`` after their last
    insertion regardless of access. A non-positive capacity or TTL yields a
    cache that never retains anything.
    """

    def __init__(self, max_entries: int, ttl_minutes: int, name: str = "default") -> None:
        self.max_entries = max(0, int(max_entries))
        self.ttl_minutes = max(0, int(ttl_minutes))
        self.name = name
        self.stats = CacheStats()
        self._ttl_seconds = float(self.ttl_minutes * 60)
        self._lock = Lock()
        self._store: OrderedDict[CacheKey, _Slot] = OrderedDict()
        # Keys by insertion time; with a fixed TTL this is also expiry order
        self._by_expiry: OrderedDict[CacheKey, None] = OrderedDict()
        if not self.enabled:
            logger.warning(
                "query_cache_disabled",
                cache=name,
                max_entries=max_entries,
                ttl_minutes=ttl_minutes,
            )

    @property
    def enabled(self) -> bool:
        return self.max_entries > 0 and self._ttl_seconds > 0

    @property
    def size(self) -> int:
        return len(self)

    def __len__(self) -> int:
        now = monotonic()
        with self._lock:
            return sum(1 for slot in self._store.values() if slot.expires_at > now)

    def __contains__(self, key: object) -> bool:
        return self.peek(key) is not None  # type: ignore[arg-type]

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        """Return the live entry for ``key`` and mark it most recently used."""
        now = monotonic()
        expired = False
        with self._lock:
            slot = self._store.get(key)
            if slot is not None and slot.expires_at <= now:
                self._store.pop(key, None)
                self._by_expiry.pop(key, None)
                self.stats.evictions += 1
                expired = True
                slot = None
            if slot is None:
                self.stats.misses += 1
            else:
                self._store.move_to_end(key)
                self.stats.hits += 1
        if expired:
            record_cache_eviction("expired", instance=self.name)
        return slot.entry if slot is not None else None

    def peek(self, key: CacheKey) -> Optional[CacheEntry]:
        """Return the live entry for ``key`` without touching recency or stats."""
        now = monotonic()
        with self._lock:
            slot = self._store.get(key)
            if slot is None or slot.expires_at <= now:
                return None
            return slot.entry

    def put(self, key: CacheKey, value: CacheEntry) -> None:
        """Insert or overwrite ``key``, restarting its TTL."""
        if not self.enabled:
            return
        now = monotonic()
        evicted = 0
        with self._lock:
            self._store[key] = _Slot(entry=value, expires_at=now + self._ttl_seconds)
            self._store.move_to_end(key)
            self._by_expiry[key] = None
            self._by_expiry.move_to_end(key)
            expired = self._prune_expired(now)
            while len(self._store) > self.max_entries:
                evicted_key, _ = self._store.popitem(last=False)
                self._by_expiry.pop(evicted_key, None)
                evicted += 1
                logger.debug("cache_evicted", cache=self.name, query=redact_query(evicted_key.query))
            self.stats.evictions += expired + evicted
            size = len(self._store)
        record_cache_eviction("expired", instance=self.name, count=expired)
        record_cache_eviction("capacity", instance=self.name, count=evicted)
        set_cache_entries(size, instance=self.name)

    def remove(self, key: CacheKey) -> bool:
        """Drop ``key``; returns False if it was absent or already expired."""
        now = monotonic()
        with self._lock:
            slot = self._store.pop(key, None)
            self._by_expiry.pop(key, None)
            removed = slot is not None and slot.expires_at > now
            size = len(self._store)
        set_cache_entries(size, instance=self.name)
        return removed

    def keys(self) -> list[CacheKey]:
        """Live keys, least recently used first."""
        now = monotonic()
        with self._lock:
            return [key for key, slot in self._store.items() if slot.expires_at > now]

    def purge(self) -> None:
        """Drop every entry immediately."""
        with self._lock:
            dropped = len(self._store)
            self._store.clear()
            self._by_expiry.clear()
        set_cache_entries(0, instance=self.name)
        logger.debug("cache_purged", cache=self.name, dropped=dropped)

    def _prune_expired(self, now: float) -> int:
        # Walks insertion order, so every expired entry is dropped regardless
        # of where recency has moved it.
        pruned = 0
        while self._by_expiry:
            key = next(iter(self._by_expiry))
            if self._store[key].expires_at > now:
                break
            self._by_expiry.popitem(last=False)
            del self._store[key]
            pruned += 1
        return pruned


def redact_query(query: str, max_length: int = 50) -> str:
    """Redact query for logging - show prefix and hash for traceability."""
    if len(query) <= max_length:
        return f"{query[:20]}..." if len(query) > 20 else query
    query_hash = hashlib.sha256(query.encode()).hexdigest()[:8]
    return f"{query[:20]}...[hash:{query_hash}]"


def new_cache(max_entries: int, ttl_minutes: int, name: str = "default") -> BoundedTTLCache:
    """Create the result cache for one data-source instance."""
    return BoundedTTLCache(max_entries=max_entries, ttl_minutes=ttl_minutes, name=name)
