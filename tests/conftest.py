"""Shared test fixtures for the Debridarr test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from debridarr.application.factories.stream_factory import StreamFactory
from debridarr.domain.entities.sources import (
    AccountConfig,
    AccountRef,
    CandidateSource,
    IdType,
    ResolvedFile,
    SourceKind,
    StreamRequest,
    UserConfig,
)
from debridarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie_request() -> StreamRequest:
    return StreamRequest(id_type=IdType.IMDB, id="tt0111161")


@pytest.fixture()
def series_request() -> StreamRequest:
    return StreamRequest(id_type=IdType.IMDB, id="tt0944947", season=1, episode=2)


@pytest.fixture()
def torrent_source() -> CandidateSource:
    """Minimal cached torrent as returned by the search API."""
    return CandidateSource(
        content_id="aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa",
        title="The.Shawshank.Redemption.1994.1080p.BluRay.x264",
        kind=SourceKind.TORRENT,
        size=8_000_000_000,
        seeders=42,
        age="12d",
        indexer="TorrentGalaxy",
    )


@pytest.fixture()
def resolved_file(torrent_source: CandidateSource) -> ResolvedFile:
    return ResolvedFile(
        source_id=torrent_source.content_id,
        filename="The.Shawshank.Redemption.1994.1080p.BluRay.x264.mkv",
        size=7_900_000_000,
        index=0,
        account=AccountRef(provider_id="torbox", cached=True),
    )


@pytest.fixture()
def user_config() -> UserConfig:
    """User with a TorBox and a Premiumize account."""
    return UserConfig(
        accounts=(
            AccountConfig(provider_id="torbox", credential="tb-key"),
            AccountConfig(provider_id="premiumize", credential="pm-key"),
        )
    )


# ---------------------------------------------------------------------------
# Application / infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def stream_factory() -> StreamFactory:
    return StreamFactory(base_url="http://localhost:3000", addon_name="TorBox Search")


@pytest.fixture()
async def disk_cache(tmp_path: Path) -> DiskcacheAdapter:
    """Default cache backend, opened on a throwaway directory."""
    async with DiskcacheAdapter(directory=tmp_path / "cache", ttl_seconds=3600) as cache:
        yield cache
