"""TorBox search API client (async httpx).

Implements ``SearchProviderPort``. Torrents come from
``/torrents/{id_type}_id:{id}``, NZBs from ``/usenet/{id_type}_id:{id}``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from debridarr.domain.entities.errors import AuthError, ProviderError
from debridarr.domain.entities.sources import IdType, ProviderResult, SourceKind

from .converters import convert_metadata, convert_records

log = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://search-api.torbox.app"

# Error codes that mean "the credential itself is wrong".
AUTH_ERROR_CODES: frozenset[str] = frozenset({"BAD_TOKEN", "AUTH_ERROR", "NO_AUTH"})

_RESULT_KEYS: dict[SourceKind, str] = {
    SourceKind.TORRENT: "torrents",
    SourceKind.USENET: "nzbs",
}
_PATHS: dict[SourceKind, str] = {
    SourceKind.TORRENT: "torrents",
    SourceKind.USENET: "usenet",
}


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


class HttpxSearchApiClient:
    """Async client for the TorBox search API.

    Raises ``AuthError`` when the API rejects the key and ``ProviderError``
    for every other fault, so callers can short-circuit on the former.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_params(
        kind: SourceKind,
        *,
        season: int | None,
        episode: int | None,
        search_user_engines: bool,
    ) -> dict[str, str]:
        params = {"search_user_engines": _bool_param(search_user_engines)}
        if season is not None:
            params["season"] = str(season)
        if episode is not None:
            params["episode"] = str(episode)
        if kind is SourceKind.TORRENT:
            params["metadata"] = "true"
        else:
            params["check_cache"] = "true"
        return params

    @staticmethod
    def _raise_for_envelope(payload: Any, status_code: int) -> dict[str, Any]:
        """Validate the ``{success, error, detail, data}`` envelope."""
        if not isinstance(payload, dict):
            raise ProviderError("INVALID_RESPONSE", "response is not a JSON object")

        error_code = str(payload.get("error") or "")
        detail = str(payload.get("detail") or "")

        if error_code in AUTH_ERROR_CODES or status_code in (401, 403):
            raise AuthError(error_code or "BAD_TOKEN", detail)
        if not payload.get("success", status_code < 400) or status_code >= 400:
            raise ProviderError(error_code or f"HTTP_{status_code}", detail)

        data = payload.get("data")
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ProviderError("INVALID_RESPONSE", "'data' is not a JSON object")
        return data

    async def _get(
        self, path: str, *, api_key: str, params: dict[str, str]
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {api_key}"},
            )
        except httpx.TimeoutException as exc:
            log.warning("search_api_timeout", path=path)
            raise ProviderError("TIMEOUT", "search API did not respond in time") from exc
        except httpx.HTTPError as exc:
            log.warning("search_api_network_error", path=path, error=str(exc))
            raise ProviderError("NETWORK_ERROR", str(exc)) from exc

        try:
            payload = resp.json()
        except ValueError:
            if resp.status_code in (401, 403):
                raise AuthError("BAD_TOKEN", f"HTTP {resp.status_code}") from None
            log.warning("search_api_invalid_json", path=path, status=resp.status_code)
            raise ProviderError(
                f"HTTP_{resp.status_code}", "invalid JSON from search API"
            ) from None

        return self._raise_for_envelope(payload, resp.status_code)

    # ------------------------------------------------------------------
    # Public API (SearchProviderPort)
    # ------------------------------------------------------------------

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
    ) -> ProviderResult:
        """Fetch candidate sources for an id.

        Raises:
            AuthError: The API rejected *api_key*.
            ProviderError: Any other upstream fault.
        """
        path = f"/{_PATHS[kind]}/{id_type.search_key}:{id}"
        params = self._build_params(
            kind,
            season=season,
            episode=episode,
            search_user_engines=search_user_engines,
        )
        data = await self._get(path, api_key=api_key, params=params)

        sources = convert_records(data.get(_RESULT_KEYS[kind]), kind)
        metadata = convert_metadata(data.get("metadata"))
        log.debug(
            "search_api_fetched",
            kind=kind.value,
            id=f"{id_type.value}:{id}",
            count=len(sources),
            has_metadata=metadata is not None,
        )
        return ProviderResult(sources=tuple(sources), metadata=metadata)
