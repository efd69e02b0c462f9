"""In-process TTL cache shared by every request of one process.

Opt-in backend (``cache.backend: memory``); entries are lost on restart.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Optional

import structlog

log = structlog.get_logger(__name__)

# Sweep expired entries every N writes.
_SWEEP_EVERY = 256


class MemoryCacheAdapter:
    """Async dict-backed cache with per-entry expiry.

    - Expiry is checked lazily on every read; an expired entry is never
      returned and is dropped on access.
    - A sweep removes all expired entries every ``_SWEEP_EVERY`` writes so
      keys that are never read again do not pile up.
    - No locking: entries are replaced wholesale (last writer wins) and all
      access happens on the event loop thread.

    Args:
        ttl_seconds: Default TTL for `set()` without explicit value.
            ``0`` means no expiry.
        clock: Monotonic time source (seconds), injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: int = 3600,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float | None, Any]] = {}
        self._writes = 0

        log.info("memory_cache_init", default_ttl=ttl_seconds)

    # --- Context Manager ---
    async def __aenter__(self) -> MemoryCacheAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    # --- CachePort implementation ---
    def _live_value(self, key: str) -> tuple[bool, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        expires_at, value = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return False, None
        return True, value

    async def get(self, key: str) -> Optional[Any]:
        found, value = self._live_value(key)
        log.debug("cache_get", key=key, hit=found)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expire_time = ttl if ttl is not None else self.default_ttl
        expires_at = self._clock() + expire_time if expire_time > 0 else None
        self._entries[key] = (expires_at, value)
        log.debug("cache_set", key=key, ttl=expire_time)

        self._writes += 1
        if self._writes % _SWEEP_EVERY == 0:
            self.sweep()

    async def delete(self, key: str) -> bool:
        deleted = self._entries.pop(key, None) is not None
        log.debug("cache_delete", key=key, deleted=deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        found, _ = self._live_value(key)
        return found

    async def clear(self) -> None:
        self._entries.clear()
        log.warning("cache_cleared", backend="memory")

    def sweep(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [
            key
            for key, (expires_at, _) in self._entries.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            log.debug("cache_sweep", removed=len(expired), remaining=len(self._entries))
        return len(expired)
