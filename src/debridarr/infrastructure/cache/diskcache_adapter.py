"""Diskcache adapter - SQLite-backed CachePort for restarts and multi-process use."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, TypeVar

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)

_T = TypeVar("_T")


class DiskcacheAdapter:
    """Persistent source/metadata cache on top of ``diskcache.Cache``.

    Lets cached candidate lists survive restarts and be shared by several
    worker processes on one host. diskcache is synchronous, so every call
    runs in a worker thread; a semaphore caps parallel SQLite access.
    diskcache checks expiry on read, so an expired entry is never returned.

    Args:
        directory: Directory holding the SQLite database.
        ttl_seconds: Default TTL for `set()` without explicit value (0 = none).
        max_concurrent: Max parallel disk operations.
    """

    def __init__(
        self,
        directory: str | Path = "./.cache/debridarr",
        ttl_seconds: int = 3600,
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self._db: DiskCache | None = None
        self._slots = asyncio.Semaphore(max_concurrent)

        log.info(
            "diskcache_adapter_init",
            directory=str(self.directory),
            default_ttl=ttl_seconds,
            max_concurrent=max_concurrent,
        )

    # --- Context Manager ---
    async def __aenter__(self) -> DiskcacheAdapter:
        if self._db is None:
            self._db = await asyncio.to_thread(DiskCache, str(self.directory))
            log.info("diskcache_opened", directory=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._db is None:
            return
        db, self._db = self._db, None
        await asyncio.to_thread(db.close)
        log.info("diskcache_closed", directory=str(self.directory))

    # --- Helpers ---
    def _require_open(self) -> DiskCache:
        if self._db is None:
            raise RuntimeError(
                "DiskcacheAdapter is not open; use 'async with' or await __aenter__()"
            )
        return self._db

    async def _run(self, fn: Callable[..., _T], *args: Any, **kwargs: Any) -> _T:
        async with self._slots:
            return await asyncio.to_thread(fn, *args, **kwargs)

    # --- CachePort implementation ---
    async def get(self, key: str) -> Optional[Any]:
        db = self._require_open()
        value = await self._run(db.get, key, default=None)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        db = self._require_open()
        seconds = self.default_ttl if ttl is None else ttl
        await self._run(db.set, key, value, expire=seconds or None)
        log.debug("cache_set", key=key, ttl=seconds)

    async def delete(self, key: str) -> bool:
        if self._db is None:
            return False
        deleted = bool(await self._run(self._db.delete, key))
        log.debug("cache_delete", key=key, deleted=deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        if self._db is None:
            return False
        # Membership honours expiry.
        return await self._run(self._db.__contains__, key)

    async def clear(self) -> None:
        if self._db is None:
            return
        removed = await self._run(self._db.clear)
        log.warning("cache_cleared", backend="diskcache", removed=removed)
