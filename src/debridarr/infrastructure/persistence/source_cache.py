"""Candidate-source and title-metadata caches backed by CachePort.

Two independent namespaces on one shared cache, each with its own TTL.
Values are stored as JSON strings so every backend returns byte-identical
data for a key.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import structlog

from debridarr.domain.entities.sources import (
    CandidateSource,
    IdType,
    SeasonInfo,
    SourceKind,
    TitleMetadata,
)
from debridarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


def _source_to_dict(source: CandidateSource) -> dict[str, Any]:
    return {
        "content_id": source.content_id,
        "title": source.title,
        "kind": source.kind.value,
        "size": source.size,
        "seeders": source.seeders,
        "age": source.age,
        "indexer": source.indexer,
        "cached": source.cached,
        "user_submitted": source.user_submitted,
        "nzb": source.nzb,
    }


def _source_from_dict(d: dict[str, Any]) -> CandidateSource:
    return CandidateSource(
        content_id=d["content_id"],
        title=d["title"],
        kind=SourceKind(d["kind"]),
        size=d.get("size"),
        seeders=d.get("seeders"),
        age=d.get("age"),
        indexer=d.get("indexer"),
        cached=d.get("cached"),
        user_submitted=d.get("user_submitted", False),
        nzb=d.get("nzb"),
    )


def _serialize_sources(sources: Sequence[CandidateSource]) -> str:
    return json.dumps([_source_to_dict(s) for s in sources], ensure_ascii=False)


def _deserialize_sources(data: str) -> list[CandidateSource]:
    return [_source_from_dict(d) for d in json.loads(data)]


def _serialize_metadata(metadata: TitleMetadata) -> str:
    seasons = (
        [
            {"number": s.number, "episode_count": s.episode_count}
            for s in metadata.seasons
        ]
        if metadata.seasons is not None
        else None
    )
    return json.dumps(
        {"titles": list(metadata.titles), "seasons": seasons}, ensure_ascii=False
    )


def _deserialize_metadata(data: str) -> TitleMetadata:
    d = json.loads(data)
    raw_seasons = d.get("seasons")
    seasons = (
        tuple(
            SeasonInfo(number=s["number"], episode_count=s["episode_count"])
            for s in raw_seasons
        )
        if raw_seasons is not None
        else None
    )
    return TitleMetadata(titles=tuple(d.get("titles", ())), seasons=seasons)


def source_cache_key(
    kind: SourceKind,
    id_type: IdType,
    id: str,
    season: int | None,
    episode: int | None,
) -> str:
    return f"sources:{kind.value}:{id_type.value}:{id}:{season}:{episode}"


def metadata_cache_key(id_type: IdType, id: str) -> str:
    return f"metadata:{id_type.value}:{id}"


class SourceCache:
    """Candidate-source lists keyed by (kind, id type, id, season, episode)."""

    def __init__(self, cache: CachePort, ttl_seconds: int = 3600) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    async def get(
        self,
        kind: SourceKind,
        id_type: IdType,
        id: str,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[CandidateSource] | None:
        key = source_cache_key(kind, id_type, id, season, episode)
        data = await self.cache.get(key)
        if data is None:
            return None
        try:
            return _deserialize_sources(data)
        except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
            log.error("source_cache_deserialize_error", key=key, error=str(e))
            return None

    async def set(
        self,
        kind: SourceKind,
        id_type: IdType,
        id: str,
        season: int | None,
        episode: int | None,
        sources: Sequence[CandidateSource],
    ) -> int:
        """Store *sources*, minus user-submitted ones. Returns the stored count."""
        shared = [s for s in sources if not s.user_submitted]
        key = source_cache_key(kind, id_type, id, season, episode)
        await self.cache.set(key, _serialize_sources(shared), ttl=self.ttl)
        log.debug(
            "source_cache_saved",
            key=key,
            stored=len(shared),
            skipped_user=len(sources) - len(shared),
            ttl=self.ttl,
        )
        return len(shared)


class TitleMetadataCache:
    """Title metadata keyed by (id type, id)."""

    def __init__(self, cache: CachePort, ttl_seconds: int = 86_400) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    async def get(self, id_type: IdType, id: str) -> TitleMetadata | None:
        key = metadata_cache_key(id_type, id)
        data = await self.cache.get(key)
        if data is None:
            return None
        try:
            return _deserialize_metadata(data)
        except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
            log.error("metadata_cache_deserialize_error", key=key, error=str(e))
            return None

    async def set(self, id_type: IdType, id: str, metadata: TitleMetadata) -> None:
        key = metadata_cache_key(id_type, id)
        await self.cache.set(key, _serialize_metadata(metadata), ttl=self.ttl)
        log.debug("metadata_cache_saved", key=key, ttl=self.ttl)
