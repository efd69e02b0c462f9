"""TorBox availability resolver.

Uses the instant-availability endpoint with file listings:

    GET /v1/api/torrents/checkcached?hash=a,b&format=list&list_files=true

Only cached torrents are returned by TorBox; uncached hashes are absent
from ``data``. File index is the position in the returned file list.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from debridarr.domain.entities.errors import DebridAccountError
from debridarr.domain.entities.sources import CandidateSource

from .base import BaseDebridResolver, SourceListing
from .file_matcher import DebridFileEntry

_CHECK_CHUNK = 100
_AUTH_ERRORS = frozenset({"BAD_TOKEN", "AUTH_ERROR", "NO_AUTH"})


def _entry_files(entry: dict[str, Any]) -> tuple[DebridFileEntry, ...]:
    files: list[DebridFileEntry] = []
    for index, raw in enumerate(entry.get("files") or []):
        if not isinstance(raw, dict):
            continue
        name = raw.get("name") or raw.get("short_name")
        if not name:
            continue
        size = raw.get("size")
        files.append(
            DebridFileEntry(
                name=str(name),
                size=int(size) if isinstance(size, (int, float)) else None,
                index=index,
            )
        )
    return tuple(files)


def _iter_entries(data: Any) -> list[dict[str, Any]]:
    """``format=list`` gives a list; older deployments answer with a dict."""
    if isinstance(data, list):
        return [e for e in data if isinstance(e, dict)]
    if isinstance(data, dict):
        entries = []
        for key, value in data.items():
            if isinstance(value, dict):
                entries.append({"hash": key, **value})
        return entries
    return []


class TorboxResolver(BaseDebridResolver):
    """Checks TorBox's cache for candidate torrents."""

    provider_id = "torbox"

    async def _check_chunk(
        self, credential: str, hashes: Sequence[str]
    ) -> dict[str, SourceListing]:
        resp = await self._http.get(
            f"{self._base_url}/v1/api/torrents/checkcached",
            params={
                "hash": ",".join(hashes),
                "format": "list",
                "list_files": "true",
            },
            headers={"Authorization": f"Bearer {credential}"},
        )
        try:
            payload: Any = resp.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and payload.get("error") in _AUTH_ERRORS:
            raise DebridAccountError(
                "Invalid Credentials",
                "TorBox rejected your API key. Check your configuration.",
            )
        self._check_status(resp)
        if not isinstance(payload, dict):
            raise DebridAccountError("Invalid Response", "TorBox returned invalid JSON.")
        if not payload.get("success", True):
            raise DebridAccountError(
                str(payload.get("error") or "Error"),
                str(payload.get("detail") or "TorBox reported an error."),
            )

        listings: dict[str, SourceListing] = {}
        for entry in _iter_entries(payload.get("data")):
            content_id = str(entry.get("hash") or "").lower()
            if content_id:
                listings[content_id] = SourceListing(
                    cached=True, files=_entry_files(entry)
                )
        return listings

    async def _list_available(
        self,
        credential: str,
        sources: Sequence[CandidateSource],
    ) -> dict[str, SourceListing]:
        hashes = list(dict.fromkeys(s.content_id for s in sources))
        listings: dict[str, SourceListing] = {}
        # One chunk in flight per key.
        for start in range(0, len(hashes), _CHECK_CHUNK):
            listings.update(
                await self._check_chunk(credential, hashes[start : start + _CHECK_CHUNK])
            )
        return listings
