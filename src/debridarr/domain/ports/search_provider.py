"""Port for the external search index."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from debridarr.domain.entities.sources import IdType, ProviderResult, SourceKind


@runtime_checkable
class SearchProviderPort(Protocol):
    """Async interface to the search provider.

    Raises ``AuthError`` when the credential is rejected and
    ``ProviderError`` for every other upstream fault.
    """

    async def fetch_sources(
        self,
        kind: SourceKind,
        id_type: IdType,
        id: str,
        *,
        api_key: str,
        season: int | None = None,
        episode: int | None = None,
        search_user_engines: bool = False,
    ) -> ProviderResult: ...
