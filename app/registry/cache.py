"""Time-based cache around :class:`RegistryLoader`.

The cache is an explicit object (stored on ``app.state`` by the API) so that
request handlers and tests can inject their own. Concurrent cache misses share
one in-flight refresh.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Callable, Protocol

from observability.logging_config import get_logger
from observability.metrics import MetricsClient, get_metrics_client

from .models import Registry

logger = get_logger("registry.cache")

DEFAULT_TTL_S = 10 * 60


class EmptyRegistryPolicy(str, Enum):
    """What a refresh that yields zero features does to a non-empty cache.

    OVERWRITE: snapshot data is authoritative even when empty.
    KEEP_LAST_GOOD: keep serving the previous non-empty registry.
    """

    OVERWRITE = "overwrite"
    KEEP_LAST_GOOD = "keep_last_good"


class RegistrySource(Protocol):
    async def load(self) -> Registry:
        ...


class RegistryCache:
    def __init__(
        self,
        loader: RegistrySource,
        *,
        ttl_s: float = DEFAULT_TTL_S,
        empty_policy: EmptyRegistryPolicy | str = EmptyRegistryPolicy.OVERWRITE,
        clock: Callable[[], float] = time.monotonic,
        metrics: MetricsClient | None = None,
    ) -> None:
        self.loader = loader
        self.ttl_s = float(ttl_s)
        self.empty_policy = EmptyRegistryPolicy(empty_policy)
        self._clock = clock
        self._metrics = metrics
        self._value: Registry | None = None
        self._built_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def value(self) -> Registry | None:
        return self._value

    @property
    def built_at(self) -> float | None:
        return self._built_at

    @property
    def metrics(self) -> MetricsClient:
        return self._metrics or get_metrics_client()

    def is_fresh(self) -> bool:
        if self._value is None or self._built_at is None:
            return False
        return self._clock() - self._built_at < self.ttl_s

    def peek(self) -> Registry:
        """Current value without triggering a refresh."""
        return self._value if self._value is not None else Registry.empty()

    async def get(self, force_refresh: bool = False) -> Registry:
        if not force_refresh and self.is_fresh():
            return self._value  # type: ignore[return-value]
        async with self._lock:
            # Another caller may have refreshed while we waited.
            if not force_refresh and self.is_fresh():
                return self._value  # type: ignore[return-value]
            return await self._refresh_locked()

    async def refresh(self) -> Registry:
        async with self._lock:
            return await self._refresh_locked()

    async def _refresh_locked(self) -> Registry:
        fresh = await self.loader.load()
        previous = self._value
        outcome = "ok"
        if fresh.is_empty():
            outcome = "empty"
            if (
                self.empty_policy is EmptyRegistryPolicy.KEEP_LAST_GOOD
                and previous is not None
                and not previous.is_empty()
            ):
                logger.warning(
                    "registry refresh returned no features; keeping last good snapshot",
                    extra={"features": len(previous.features_set)},
                )
                fresh = previous
                outcome = "kept_last_good"
        self._value = fresh
        self._built_at = self._clock()
        self.metrics.incr("registry_refresh", {"outcome": outcome})
        self.metrics.observe("registry_features", len(fresh.features_set))
        return fresh


__all__ = ["DEFAULT_TTL_S", "EmptyRegistryPolicy", "RegistryCache", "RegistrySource"]
