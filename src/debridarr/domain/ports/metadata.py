"""Port for season metadata lookups."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from debridarr.domain.entities.sources import SeasonInfo


@runtime_checkable
class SeasonMetadataPort(Protocol):
    """Async interface for season/episode-count lookups."""

    async def get_seasons(
        self, tmdb_id: int, *, access_token: str | None = None
    ) -> list[SeasonInfo] | None:
        """Season layout of a TV show, or None if unknown.

        Raises:
            MetadataError: The lookup itself failed.
        """
        ...
