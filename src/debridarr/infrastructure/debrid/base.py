"""Shared base class for debrid availability resolvers.

Subclasses only talk to their service's API (``_list_available``); the
base turns listings into ``ResolvedFile`` entries via the file matcher and
converts account-level faults into ``AccountFailure`` outcomes, so
``resolve`` never raises.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import httpx
import structlog

from debridarr.domain.entities.errors import DebridAccountError
from debridarr.domain.entities.services import service_details
from debridarr.domain.entities.sources import (
    AccountFailure,
    AccountRef,
    AvailabilityOutcome,
    CandidateSource,
    FilesFound,
    MatchContext,
    ResolvedFile,
    SourceKind,
)

from .file_matcher import DebridFileEntry, select_files


@dataclass(frozen=True)
class SourceListing:
    """What an account knows about one source."""

    cached: bool
    files: tuple[DebridFileEntry, ...] = ()


class BaseDebridResolver:
    """Shared base for httpx-based availability resolvers.

    Subclasses **must** set ``provider_id`` and override
    ``_list_available()``; they raise ``DebridAccountError`` for
    account-level faults and skip (log) sources that fail on their own.
    """

    provider_id: str = ""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str,
        match_threshold: float = 0.7,
        min_file_size_ratio: float = 0.5,
        max_concurrent: int = 5,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._match_threshold = match_threshold
        self._min_file_size_ratio = min_file_size_ratio
        self._max_concurrent = max_concurrent
        self._log = structlog.get_logger(self.provider_id or __name__)

    @property
    def display_name(self) -> str:
        return service_details(self.provider_id).name

    # ------------------------------------------------------------------
    # Subclass hook
    # ------------------------------------------------------------------

    async def _list_available(
        self,
        credential: str,
        sources: Sequence[CandidateSource],
    ) -> dict[str, SourceListing]:
        """Map content id -> listing for every source the account can serve."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _check_status(self, resp: httpx.Response) -> None:
        """Translate account-level HTTP statuses into DebridAccountError."""
        if resp.status_code in (401, 403):
            raise DebridAccountError(
                "Invalid Credentials",
                f"{self.display_name} rejected your API key. Check your configuration.",
            )
        if resp.status_code == 429:
            raise DebridAccountError(
                "Rate Limited",
                f"{self.display_name} is rate limiting requests. Try again later.",
            )
        if resp.status_code >= 500:
            raise DebridAccountError(
                "Service Unavailable",
                f"{self.display_name} returned HTTP {resp.status_code}.",
            )
        resp.raise_for_status()

    def _failure(self, title: str, description: str) -> AccountFailure:
        return AccountFailure(
            provider_id=self.provider_id, title=title, description=description
        )

    # ------------------------------------------------------------------
    # AvailabilityResolverPort
    # ------------------------------------------------------------------

    async def resolve(
        self,
        credential: str,
        sources: Sequence[CandidateSource],
        context: MatchContext,
    ) -> AvailabilityOutcome:
        torrents = [
            s for s in sources if s.kind is SourceKind.TORRENT and s.content_id
        ]
        if not torrents:
            return FilesFound(provider_id=self.provider_id)

        try:
            listings = await self._list_available(credential, torrents)
        except DebridAccountError as exc:
            self._log.warning(
                f"{self.provider_id}_account_error",
                title=exc.title,
                description=exc.description,
            )
            return self._failure(exc.title, exc.description)
        except httpx.TimeoutException:
            self._log.warning(f"{self.provider_id}_timeout")
            return self._failure(
                "Timeout", f"{self.display_name} did not respond in time."
            )
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            self._log.warning(f"{self.provider_id}_http_error", status=status)
            return self._failure(
                "Request Failed", f"{self.display_name} returned HTTP {status}."
            )
        except httpx.HTTPError as exc:
            self._log.warning(f"{self.provider_id}_network_error", error=str(exc))
            return self._failure(
                "Network Error", f"Could not reach {self.display_name}: {exc}"
            )

        files: list[ResolvedFile] = []
        for source in torrents:
            listing = listings.get(source.content_id)
            if listing is None:
                continue
            files.extend(self._resolve_source(source, listing, context))

        self._log.info(
            f"{self.provider_id}_availability",
            sources=len(torrents),
            available=len(listings),
            files=len(files),
        )
        return FilesFound(provider_id=self.provider_id, files=tuple(files))

    def _resolve_source(
        self,
        source: CandidateSource,
        listing: SourceListing,
        context: MatchContext,
    ) -> list[ResolvedFile]:
        try:
            matches = select_files(
                listing.files,
                context,
                source_title=source.title,
                threshold=self._match_threshold,
                min_size_ratio=self._min_file_size_ratio,
            )
        except Exception:  # noqa: BLE001
            # One unparseable listing must not sink the account.
            self._log.warning(
                f"{self.provider_id}_match_failed",
                content_id=source.content_id,
                exc_info=True,
            )
            return []

        account = AccountRef(provider_id=self.provider_id, cached=listing.cached)
        return [
            ResolvedFile(
                source_id=source.content_id,
                filename=m.file.basename,
                size=m.file.size,
                index=m.file.index,
                account=account,
            )
            for m in matches
        ]
