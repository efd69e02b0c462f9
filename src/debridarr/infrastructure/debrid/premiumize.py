"""Premiumize availability resolver.

Two steps:

1. ``GET /api/cache/check?items[]=<hash>...`` tells which hashes are cached.
2. ``POST /api/transfer/directdl`` (``src=magnet:?xt=urn:btih:<hash>``) lists
   the files of each cached hash.

A failed file listing only drops that source; authentication errors
fail the whole account.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import httpx

from debridarr.domain.entities.errors import DebridAccountError
from debridarr.domain.entities.sources import CandidateSource

from .base import BaseDebridResolver, SourceListing
from .file_matcher import DebridFileEntry

_CHECK_CHUNK = 100
_AUTH_MARKERS = ("not logged in", "api key", "apikey")


def _magnet(content_id: str) -> str:
    return f"magnet:?xt=urn:btih:{content_id}"


class PremiumizeResolver(BaseDebridResolver):
    """Checks the Premiumize cache and lists files of cached torrents."""

    provider_id = "premiumize"

    def _raise_for_error(self, payload: Any) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise DebridAccountError(
                "Invalid Response", "Premiumize returned invalid JSON."
            )
        if payload.get("status") == "error":
            message = str(payload.get("message") or "Unknown error")
            if any(marker in message.lower() for marker in _AUTH_MARKERS):
                raise DebridAccountError(
                    "Invalid Credentials",
                    "Premiumize rejected your API key. Check your configuration.",
                )
            raise DebridAccountError("Error", f"Premiumize: {message}")
        return payload

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    async def _check_chunk(self, credential: str, hashes: Sequence[str]) -> list[str]:
        resp = await self._http.get(
            f"{self._base_url}/api/cache/check",
            params={"apikey": credential, "items[]": list(hashes)},
        )
        self._check_status(resp)
        payload = self._raise_for_error(self._json(resp))

        flags = payload.get("response") or []
        return [h for h, cached in zip(hashes, flags) if cached is True]

    async def _list_files(
        self, credential: str, content_id: str
    ) -> tuple[DebridFileEntry, ...] | None:
        resp = await self._http.post(
            f"{self._base_url}/api/transfer/directdl",
            params={"apikey": credential},
            data={"src": _magnet(content_id)},
        )
        self._check_status(resp)
        payload = self._raise_for_error(self._json(resp))

        files: list[DebridFileEntry] = []
        for index, raw in enumerate(payload.get("content") or []):
            if not isinstance(raw, dict) or not raw.get("path"):
                continue
            size = raw.get("size")
            files.append(
                DebridFileEntry(
                    name=str(raw["path"]),
                    size=int(size) if isinstance(size, (int, float)) else None,
                    index=index,
                )
            )
        return tuple(files)

    async def _list_files_safe(
        self,
        credential: str,
        content_id: str,
        semaphore: asyncio.Semaphore,
    ) -> tuple[str, tuple[DebridFileEntry, ...] | None]:
        async with semaphore:
            try:
                return content_id, await self._list_files(credential, content_id)
            except DebridAccountError as exc:
                if exc.title == "Error":
                    # Per-transfer problem (e.g. unsupported content).
                    self._log.info(
                        "premiumize_directdl_failed",
                        content_id=content_id,
                        message=exc.description,
                    )
                    return content_id, None
                raise
            except httpx.HTTPStatusError as exc:
                self._log.info(
                    "premiumize_directdl_http_error",
                    content_id=content_id,
                    status=exc.response.status_code,
                )
                return content_id, None

    async def _list_available(
        self,
        credential: str,
        sources: Sequence[CandidateSource],
    ) -> dict[str, SourceListing]:
        hashes = list(dict.fromkeys(s.content_id for s in sources))
        cached: list[str] = []
        for start in range(0, len(hashes), _CHECK_CHUNK):
            cached.extend(
                await self._check_chunk(credential, hashes[start : start + _CHECK_CHUNK])
            )
        if not cached:
            return {}

        semaphore = asyncio.Semaphore(self._max_concurrent)
        results = await asyncio.gather(
            *(self._list_files_safe(credential, h, semaphore) for h in cached),
            return_exceptions=True,
        )

        listings: dict[str, SourceListing] = {}
        for result in results:
            if isinstance(result, BaseException):
                # Account-level fault (or transport error): fail the account.
                raise result
            content_id, files = result
            if files is not None:
                listings[content_id] = SourceListing(cached=True, files=files)
        return listings
