"""Cache factory - builds the adapter selected in the config."""

from __future__ import annotations

from typing import Literal

import structlog

from debridarr.domain.ports.cache import CachePort
from debridarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from debridarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["memory", "diskcache"]


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str = "./.cache/debridarr",
    ttl_seconds: int = 3600,
    max_concurrent: int = 10,
) -> CachePort:
    """Create a cache adapter for *backend*.

    Args:
        backend: "diskcache" (SQLite, default) or "memory" (in-process,
            lost on restart).
        directory: Diskcache path.
        ttl_seconds: Default TTL for entries stored without explicit TTL.
        max_concurrent: Semaphore limit for diskcache.

    Raises:
        ValueError: If `backend` is unknown.
    """
    log.info("cache_factory_create", backend=backend, ttl=ttl_seconds)
    if backend == "memory":
        return MemoryCacheAdapter(ttl_seconds=ttl_seconds)
    if backend == "diskcache":
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    raise ValueError(
        f"Unknown cache backend: {backend!r}. Must be 'memory' or 'diskcache'."
    )
