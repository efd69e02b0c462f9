"""Composition root: builds the process-wide services from AppConfig."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx
import structlog

from debridarr.application.factories.stream_factory import StreamFactory
from debridarr.application.use_cases.stream_search import (
    TORRENT_CAPABILITY,
    USENET_CAPABILITY,
    StreamSearchUseCase,
)
from debridarr.domain.entities.sources import SourceKind
from debridarr.domain.ports.cache import CachePort
from debridarr.infrastructure.cache import create_cache
from debridarr.infrastructure.config import AppConfig
from debridarr.infrastructure.debrid.registry import (
    ResolverRegistry,
    create_default_registry,
)
from debridarr.infrastructure.persistence.source_cache import (
    SourceCache,
    TitleMetadataCache,
)
from debridarr.infrastructure.tmdb.client import HttpxTmdbClient
from debridarr.infrastructure.torbox.search_api import HttpxSearchApiClient

log = structlog.get_logger(__name__)


@dataclass
class Services:
    """Shared resources and use cases for one process."""

    config: AppConfig
    cache: CachePort
    http_client: httpx.AsyncClient
    registry: ResolverRegistry
    stream_factory: StreamFactory
    torrent_search: StreamSearchUseCase
    usenet_search: StreamSearchUseCase

    def search_for(self, kind: SourceKind) -> StreamSearchUseCase:
        if kind is SourceKind.USENET:
            return self.usenet_search
        return self.torrent_search


@asynccontextmanager
async def build_services(
    config: AppConfig,
    *,
    http_client: httpx.AsyncClient | None = None,
    cache: CachePort | None = None,
) -> AsyncIterator[Services]:
    """Initialize and clean up all resources.

    Order matters:
        1. Cache (shared by both cache namespaces)
        2. HTTP client (shared by every API client)
        3. API clients and the resolver registry
        4. Stream factory and the two use cases

    An injected *http_client* or *cache* is used as-is and not closed here.
    """
    # ========== 1) Cache ==========
    owns_cache = cache is None
    if cache is None:
        cache = create_cache(
            backend=config.cache.backend,
            directory=str(config.cache.directory),
            ttl_seconds=config.search.cache_ttl_seconds,
            max_concurrent=config.cache.max_concurrent,
        )
        await cache.__aenter__()
    log.info("cache_initialized", backend=config.cache.backend)

    # ========== 2) HTTP client ==========
    owns_http = http_client is None
    if http_client is None:
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.http_timeout_seconds),
            headers={"User-Agent": config.http_user_agent},
            follow_redirects=True,
        )
    log.info("http_client_initialized")

    try:
        # ========== 3) Clients ==========
        provider = HttpxSearchApiClient(
            http_client=http_client, base_url=config.search.base_url
        )
        tmdb = HttpxTmdbClient(http_client=http_client, api_key=config.tmdb_api_key)
        registry = create_default_registry(http_client, config.debrid)
        log.info("availability_resolvers_registered", providers=registry.supported)

        # ========== 4) Use cases ==========
        source_cache = SourceCache(cache, ttl_seconds=config.search.cache_ttl_seconds)
        metadata_cache = TitleMetadataCache(
            cache, ttl_seconds=config.search.metadata_cache_ttl_seconds
        )
        factory = StreamFactory(
            base_url=config.stream.base_url, addon_name=config.stream.addon_name
        )
        common = {
            "provider": provider,
            "source_cache": source_cache,
            "metadata_cache": metadata_cache,
            "stream_factory": factory,
            "account_timeout_seconds": config.debrid.account_timeout_seconds,
        }
        services = Services(
            config=config,
            cache=cache,
            http_client=http_client,
            registry=registry,
            stream_factory=factory,
            torrent_search=StreamSearchUseCase(
                capability=TORRENT_CAPABILITY,
                resolver=registry,
                seasons=tmdb,
                **common,
            ),
            usenet_search=StreamSearchUseCase(capability=USENET_CAPABILITY, **common),
        )
        log.info("services_ready")

        yield services
    finally:
        # ========== Cleanup (reverse order) ==========
        if owns_http:
            await http_client.aclose()
            log.info("http_client_closed")
        if owns_cache:
            await cache.aclose()
            log.info("cache_closed")
