"""TMDB API client: season layout lookups (async httpx)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from debridarr.domain.entities.errors import MetadataError
from debridarr.domain.entities.sources import SeasonInfo

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"


class HttpxTmdbClient:
    """Async TMDB client for season/episode counts.

    Implements ``SeasonMetadataPort`` from domain.ports.metadata.

    Authenticates with a user's v4 read access token (Bearer) when one is
    passed, otherwise with the app-level v3 ``api_key``. Missing credentials
    and unknown shows give ``None``; every other failure raises
    ``MetadataError``.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        api_key: str | None = None,
        base_url: str = _BASE_URL,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    async def _get(
        self, path: str, *, access_token: str | None
    ) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None.

        Raises:
            MetadataError: Rejected credentials, HTTP/network failure or
                a body that is not JSON.
        """
        headers: dict[str, str] = {}
        params: dict[str, str] = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        elif self._api_key:
            params["api_key"] = self._api_key
        else:
            log.debug("tmdb_no_credentials", path=path)
            return None

        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            log.warning("tmdb_network_error", path=path, error=str(exc))
            raise MetadataError(f"TMDB request failed: {exc}") from exc

        if resp.status_code == 401:
            log.error("tmdb_credentials_invalid", status=401)
            raise MetadataError("TMDB rejected the credentials")
        if resp.status_code == 404:
            log.debug("tmdb_resource_not_found", path=path)
            return None
        if resp.status_code >= 400:
            log.warning("tmdb_http_error", path=path, status=resp.status_code)
            raise MetadataError(f"TMDB returned HTTP {resp.status_code}")

        try:
            return resp.json()
        except ValueError as exc:
            log.warning("tmdb_invalid_json", path=path)
            raise MetadataError("TMDB returned invalid JSON") from exc

    async def get_seasons(
        self, tmdb_id: int, *, access_token: str | None = None
    ) -> list[SeasonInfo] | None:
        """Season numbers and episode counts of a TV show, ordered by number.

        Raises:
            MetadataError: TMDB could not be queried.
        """
        data = await self._get(f"/tv/{tmdb_id}", access_token=access_token)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise MetadataError("TMDB response is not a JSON object")

        seasons: list[SeasonInfo] = []
        for raw in data.get("seasons") or []:
            try:
                seasons.append(
                    SeasonInfo(
                        number=int(raw["season_number"]),
                        episode_count=int(raw.get("episode_count") or 0),
                    )
                )
            except (KeyError, TypeError, ValueError):
                log.debug("tmdb_season_skipped", tmdb_id=tmdb_id, season=raw)
        seasons.sort(key=lambda s: s.number)
        return seasons
