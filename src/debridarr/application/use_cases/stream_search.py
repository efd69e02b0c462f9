"""Stream search use case.

Stremio id -> candidate sources (cache-first) -> optional season metadata
-> availability per account (parallel) -> merge -> stream descriptors.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import structlog

from debridarr.application.factories.stream_factory import StreamFactory
from debridarr.domain.entities.errors import AuthError, MetadataError
from debridarr.domain.entities.sources import (
    ANIME_ID_TYPES,
    SINGLE_FILE_INDEX,
    AccountConfig,
    AccountFailure,
    AccountRef,
    AvailabilityOutcome,
    CandidateSource,
    IdType,
    MatchContext,
    ProviderMetadata,
    ResolvedFile,
    SeasonInfo,
    SourceKind,
    StreamDescriptor,
    StreamRequest,
    TitleMetadata,
    UserConfig,
)
from debridarr.domain.ports.metadata import SeasonMetadataPort
from debridarr.domain.ports.search_provider import SearchProviderPort

log = structlog.get_logger(__name__)

AUTH_ERROR_DESCRIPTION = "Invalid/expired credentials"

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its collaborators.
# Infrastructure components satisfy these via structural subtyping.
# ---------------------------------------------------------------------------


class _SourceStore(Protocol):
    """Shared TTL cache of candidate-source lists."""

    async def get(
        self,
        kind: SourceKind,
        id_type: IdType,
        id: str,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[CandidateSource] | None: ...

    async def set(
        self,
        kind: SourceKind,
        id_type: IdType,
        id: str,
        season: int | None,
        episode: int | None,
        sources: Sequence[CandidateSource],
    ) -> int: ...


class _MetadataStore(Protocol):
    """Shared TTL cache of title metadata."""

    async def get(self, id_type: IdType, id: str) -> TitleMetadata | None: ...

    async def set(
        self, id_type: IdType, id: str, metadata: TitleMetadata
    ) -> None: ...


class _AccountResolver(Protocol):
    """Dispatches an availability check to the resolver of one service."""

    async def resolve(
        self,
        provider_id: str,
        credential: str,
        sources: Sequence[CandidateSource],
        context: MatchContext,
    ) -> AvailabilityOutcome: ...


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceCapability:
    """What the pipeline does for one source kind.

    Torrents fan out across the user's accounts and get metadata
    enrichment. Usenet results are served by the TorBox account that
    searched them, so there is nothing to resolve.
    """

    kind: SourceKind
    resolve_availability: bool = False
    enrich_metadata: bool = False


TORRENT_CAPABILITY = SourceCapability(
    SourceKind.TORRENT, resolve_availability=True, enrich_metadata=True
)
USENET_CAPABILITY = SourceCapability(SourceKind.USENET)


def capability_for(kind: SourceKind) -> SourceCapability:
    return TORRENT_CAPABILITY if kind is SourceKind.TORRENT else USENET_CAPABILITY


def calculate_absolute_episode(
    season: int, episode: int, seasons: Sequence[SeasonInfo]
) -> int:
    """Running episode index across seasons (specials excluded).

    >>> calculate_absolute_episode(3, 2, [SeasonInfo(1, 12), SeasonInfo(2, 13)])
    27
    """
    previous = sum(s.episode_count for s in seasons if 0 < s.number < season)
    return previous + episode


def _unique_titles(titles: Sequence[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(t for t in titles if t))


class StreamSearchUseCase:
    """Resolve a stream request into playable stream descriptors.

    Flow:
        1. Fetch candidate sources (shared cache first, then provider).
        2. Enrich title metadata with season layout (anime ids, best-effort).
        3. Check availability on every configured account in parallel.
        4. Merge files by content id, in account order.
        5. Assemble descriptors in provider order; one error stream
           per failed account is appended at the end.
    """

    def __init__(
        self,
        *,
        capability: SourceCapability,
        provider: SearchProviderPort,
        source_cache: _SourceStore,
        metadata_cache: _MetadataStore,
        stream_factory: StreamFactory,
        resolver: _AccountResolver | None = None,
        seasons: SeasonMetadataPort | None = None,
        account_timeout_seconds: float = 20.0,
    ) -> None:
        if capability.resolve_availability and resolver is None:
            raise ValueError(f"{capability.kind.value} search needs a resolver")
        self._capability = capability
        self._provider = provider
        self._source_cache = source_cache
        self._metadata_cache = metadata_cache
        self._factory = stream_factory
        self._resolver = resolver
        self._seasons = seasons
        self._account_timeout = account_timeout_seconds

    @property
    def kind(self) -> SourceKind:
        return self._capability.kind

    async def execute(
        self, request: StreamRequest, user: UserConfig
    ) -> list[StreamDescriptor]:
        """Search, resolve and assemble streams for *request*.

        Returns:
            Stream descriptors, best-ranked source first, followed by one
            error descriptor per failed account.

        Raises:
            ProviderError: The search provider failed for a reason other
                than rejected credentials.
        """
        api_key = user.provider_credential
        if not api_key:
            log.info("stream_search_no_credential", kind=self.kind.value)
            return [
                self._factory.create_error_stream(
                    "Missing Account",
                    "Add a TorBox account to search for streams.",
                )
            ]

        try:
            sources = await self._fetch_candidates(request, user, api_key)
        except AuthError as exc:
            log.warning(
                "stream_search_auth_error",
                kind=self.kind.value,
                error_code=exc.error_code,
            )
            return [self._factory.create_error_stream("", AUTH_ERROR_DESCRIPTION)]

        if not sources:
            log.info(
                "stream_search_no_sources",
                kind=self.kind.value,
                id_type=request.id_type.value,
                id=request.id,
            )
            return []

        if not self._capability.resolve_availability:
            return self._assemble_direct(request, sources, user)

        metadata = await self._metadata_cache.get(request.id_type, request.id)
        absolute_episode = None
        if (
            request.season is not None
            and request.episode is not None
            and metadata is not None
            and metadata.seasons
        ):
            absolute_episode = calculate_absolute_episode(
                request.season, request.episode, metadata.seasons
            )

        context = MatchContext(
            season=request.season,
            episode=request.episode,
            absolute_episode=absolute_episode,
            titles=metadata.titles if metadata is not None else (),
        )

        files_by_source, failures = await self._resolve_accounts(
            user.accounts, sources, context
        )

        streams: list[StreamDescriptor] = []
        for source in sources:
            for file in files_by_source.get(source.content_id, []):
                streams.append(
                    self._factory.create_stream(
                        request,
                        source,
                        file,
                        user,
                        season=request.season,
                        episode=request.episode,
                        absolute_episode=absolute_episode,
                    )
                )
        playable = len(streams)
        streams.extend(
            self._factory.create_error_stream(f.title, f.description)
            for f in failures
        )

        log.info(
            "stream_search_complete",
            kind=self.kind.value,
            id=request.id,
            sources=len(sources),
            streams=playable,
            failed_accounts=len(failures),
        )
        return streams

    # ------------------------------------------------------------------
    # FetchCandidates / EnrichMetadata
    # ------------------------------------------------------------------

    async def _fetch_candidates(
        self, request: StreamRequest, user: UserConfig, api_key: str
    ) -> list[CandidateSource]:
        if not user.search_user_engines:
            cached = await self._source_cache.get(
                self.kind, request.id_type, request.id, request.season, request.episode
            )
            if cached is not None:
                log.info(
                    "source_cache_hit",
                    kind=self.kind.value,
                    id=request.id,
                    count=len(cached),
                )
                return cached

        t0 = time.perf_counter()
        result = await self._provider.fetch_sources(
            self.kind,
            request.id_type,
            request.id,
            api_key=api_key,
            season=request.season,
            episode=request.episode,
            search_user_engines=user.search_user_engines,
        )
        log.info(
            "sources_fetched",
            kind=self.kind.value,
            id=request.id,
            count=len(result.sources),
            duration_ms=round((time.perf_counter() - t0) * 1000),
        )

        if self._capability.enrich_metadata and result.metadata is not None:
            await self._store_metadata(request, result.metadata, user)

        await self._source_cache.set(
            self.kind,
            request.id_type,
            request.id,
            request.season,
            request.episode,
            result.sources,
        )
        return list(result.sources)

    async def _store_metadata(
        self,
        request: StreamRequest,
        metadata: ProviderMetadata,
        user: UserConfig,
    ) -> None:
        seasons: tuple[SeasonInfo, ...] | None = None
        if (
            request.id_type in ANIME_ID_TYPES
            and metadata.tmdb_id
            and self._seasons is not None
        ):
            t0 = time.perf_counter()
            try:
                found = await self._seasons.get_seasons(
                    metadata.tmdb_id, access_token=user.tmdb_access_token
                )
            except MetadataError as exc:
                log.warning(
                    "metadata_enrich_failed",
                    id_type=request.id_type.value,
                    id=request.id,
                    tmdb_id=metadata.tmdb_id,
                    error=str(exc),
                )
                found = None
            if found:
                seasons = tuple(found)
                log.debug(
                    "metadata_enriched",
                    id=request.id,
                    tmdb_id=metadata.tmdb_id,
                    seasons=len(seasons),
                    duration_ms=round((time.perf_counter() - t0) * 1000),
                )

        await self._metadata_cache.set(
            request.id_type,
            request.id,
            TitleMetadata(titles=_unique_titles(metadata.titles), seasons=seasons),
        )

    # ------------------------------------------------------------------
    # ResolveAvailability / Merge
    # ------------------------------------------------------------------

    async def _resolve_accounts(
        self,
        accounts: Sequence[AccountConfig],
        sources: Sequence[CandidateSource],
        context: MatchContext,
    ) -> tuple[dict[str, list[ResolvedFile]], list[AccountFailure]]:
        """Check every account concurrently; one outcome per account."""
        resolver = self._resolver
        if resolver is None:
            return {}, []
        outcomes = await asyncio.gather(
            *(
                self._resolve_one(resolver, account, sources, context)
                for account in accounts
            )
        )

        files_by_source: dict[str, list[ResolvedFile]] = {}
        failures: list[AccountFailure] = []
        for outcome in outcomes:
            if isinstance(outcome, AccountFailure):
                failures.append(outcome)
                continue
            for file in outcome.files:
                files_by_source.setdefault(file.source_id, []).append(file)
        return files_by_source, failures

    async def _resolve_one(
        self,
        resolver: _AccountResolver,
        account: AccountConfig,
        sources: Sequence[CandidateSource],
        context: MatchContext,
    ) -> AvailabilityOutcome:
        """Resolve one account; never raises."""
        provider_id = account.provider_id
        t0 = time.perf_counter()
        try:
            outcome = await asyncio.wait_for(
                resolver.resolve(provider_id, account.credential, sources, context),
                timeout=self._account_timeout,
            )
        except TimeoutError:
            log.warning(
                "account_timeout",
                provider=provider_id,
                timeout=self._account_timeout,
            )
            return AccountFailure(
                provider_id=provider_id,
                title="Timeout",
                description=(
                    f"Availability check did not finish within "
                    f"{self._account_timeout:g}s."
                ),
            )
        except Exception as exc:  # noqa: BLE001
            log.warning("account_resolve_error", provider=provider_id, exc_info=True)
            return AccountFailure(
                provider_id=provider_id,
                title="Error",
                description=f"Unexpected error: {exc}",
            )

        log.info(
            "account_resolved",
            provider=provider_id,
            failed=isinstance(outcome, AccountFailure),
            files=0 if isinstance(outcome, AccountFailure) else len(outcome.files),
            duration_ms=round((time.perf_counter() - t0) * 1000),
        )
        return outcome

    # ------------------------------------------------------------------
    # Usenet
    # ------------------------------------------------------------------

    def _assemble_direct(
        self,
        request: StreamRequest,
        sources: Sequence[CandidateSource],
        user: UserConfig,
    ) -> list[StreamDescriptor]:
        """One descriptor per source, served by the searching TorBox account."""
        streams = [
            self._factory.create_stream(
                request,
                source,
                ResolvedFile(
                    source_id=source.content_id,
                    filename=source.title,
                    size=source.size,
                    index=SINGLE_FILE_INDEX,
                    account=AccountRef(
                        provider_id="torbox", cached=bool(source.cached)
                    ),
                ),
                user,
                season=request.season,
                episode=request.episode,
            )
            for source in sources
        ]
        log.info(
            "stream_search_complete",
            kind=self.kind.value,
            id=request.id,
            sources=len(sources),
            streams=len(streams),
            failed_accounts=0,
        )
        return streams
