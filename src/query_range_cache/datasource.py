"""Data-source wiring around the result cache.

Each configured data-source instance owns one cache. Queries go through a
caching wrapper around the external executor: lookup, staleness check, and
on a miss the executor runs and its result is stored.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from threading import Lock
from typing import Any, Callable, Hashable, Optional, Sequence

import structlog

from .cache import BoundedTTLCache, new_cache, redact_query
from .config import InstanceConfig, Settings, parse_instance_config
from .errors import QueryExecutionError
from .observability.metrics import record_cache_request
from .types import CacheEntry, CacheKey, DataQuery, QueryResponse

logger = structlog.get_logger(__name__)


class QueryExecutor(ABC):
    """Runs a query against the backing data source."""

    @abstractmethod
    async def execute(self, query: DataQuery) -> Sequence[Any]:
        """Execute ``query`` over its time range.

        Args:
            query: Query text, resolution and requested range

        Returns:
            Result tables for the requested range
        """
        pass


class CachedQueryExecutor(QueryExecutor):
    """Caching wrapper for query executors.

    Errors raised by the inner executor propagate unchanged and leave the
    cache untouched. Concurrent misses for the same key are not coalesced.
    """

    def __init__(
        self,
        inner: QueryExecutor,
        cache: BoundedTTLCache,
        max_ttl_minutes: int,
        enabled: bool = True,
    ) -> None:
        self._inner = inner
        self._cache = cache
        self._max_ttl_minutes = max_ttl_minutes
        self._enabled = enabled

    def lookup(self, query: DataQuery) -> Optional[Sequence[Any]]:
        """Return cached tables usable for ``query``, or None."""
        key = CacheKey.for_query(query)
        cached = self._cache.get(key)
        if cached is None:
            record_cache_request("miss", instance=self._cache.name)
            logger.debug("cache_miss", ref_id=query.ref_id, query=redact_query(query.query))
            return None
        if key.expired(cached.time_range, query.time_range, self._max_ttl_minutes):
            record_cache_request("stale", instance=self._cache.name)
            logger.debug("cache_stale", ref_id=query.ref_id, query=redact_query(query.query))
            return None
        record_cache_request("hit", instance=self._cache.name)
        logger.debug("cache_hit", ref_id=query.ref_id, query=redact_query(query.query))
        return cached.tables

    async def execute(self, query: DataQuery) -> Sequence[Any]:
        if not self._enabled:
            return await self._inner.execute(query)

        cached = self.lookup(query)
        if cached is not None:
            return cached

        tables = await self._inner.execute(query)
        self._cache.put(
            CacheKey.for_query(query),
            CacheEntry(tables=tables, time_range=query.time_range),
        )
        return tables


class DataSourceInstance:
    """One configured data source and the cache it owns."""

    def __init__(self, config: InstanceConfig, instance_id: str = "default") -> None:
        self.config = config
        self.instance_id = instance_id
        self.cache = new_cache(
            config.cache_max_entries,
            config.cache_ttl_minutes,
            name=instance_id,
        )

    @classmethod
    def from_settings(
        cls,
        instance_id: str,
        raw_settings: Any,
        settings: Optional[Settings] = None,
    ) -> "DataSourceInstance":
        """Create an instance from its JSON settings document.

        Raises:
            ConfigurationError: If the settings cannot be parsed
        """
        logger.info("creating_instance", instance_id=instance_id)
        config = parse_instance_config(raw_settings, settings)
        return cls(config, instance_id=instance_id)

    def wrap(self, executor: QueryExecutor) -> CachedQueryExecutor:
        return CachedQueryExecutor(
            executor,
            self.cache,
            max_ttl_minutes=self.config.cache_max_ttl_minutes,
            enabled=self.config.cache_enabled,
        )

    def dispose(self) -> None:
        self.cache.purge()
        logger.info("disposing_instance", instance_id=self.instance_id)


InstanceFactory = Callable[[str, Any], DataSourceInstance]


class InstanceManager:
    """Keeps one live DataSourceInstance per data source.

    An instance is recreated, and its predecessor disposed, whenever the
    ``updated`` stamp passed with its settings changes.
    """

    def __init__(self, factory: InstanceFactory = DataSourceInstance.from_settings) -> None:
        self._factory = factory
        self._lock = Lock()
        self._instances: dict[str, tuple[Hashable, DataSourceInstance]] = {}

    def get(
        self,
        instance_id: str,
        raw_settings: Any,
        updated: Hashable = None,
    ) -> DataSourceInstance:
        stale: Optional[DataSourceInstance] = None
        with self._lock:
            current = self._instances.get(instance_id)
            if current is not None and current[0] == updated:
                return current[1]
            instance = self._factory(instance_id, raw_settings)
            if current is not None:
                stale = current[1]
            self._instances[instance_id] = (updated, instance)
        if stale is not None:
            stale.dispose()
        return instance

    def dispose(self, instance_id: str) -> bool:
        with self._lock:
            current = self._instances.pop(instance_id, None)
        if current is None:
            return False
        current[1].dispose()
        return True

    def dispose_all(self) -> None:
        with self._lock:
            instances = [instance for _, instance in self._instances.values()]
            self._instances.clear()
        for instance in instances:
            instance.dispose()


async def query_data(
    instance: DataSourceInstance,
    executor: QueryExecutor,
    queries: Sequence[DataQuery],
) -> dict[str, QueryResponse]:
    """Run a batch of queries through the instance cache.

    Each query gets its own response keyed by ``ref_id``; a failing query
    reports its error without affecting the others.
    """
    cached_executor = instance.wrap(executor)
    results = await asyncio.gather(
        *(cached_executor.execute(query) for query in queries),
        return_exceptions=True,
    )

    responses: dict[str, QueryResponse] = {}
    for query, result in zip(queries, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            error = QueryExecutionError(query.ref_id, str(result))
            logger.warning(
                "query_execution_failed",
                ref_id=query.ref_id,
                instance_id=instance.instance_id,
                error=str(result),
            )
            responses[query.ref_id] = QueryResponse(error=error.message)
        else:
            responses[query.ref_id] = QueryResponse(tables=result)
    return responses
