"""Tests for HttpxSearchApiClient (TorBox search API adapter)."""

from __future__ import annotations

import httpx
import pytest
import respx

from debridarr.domain.entities.errors import AuthError, ProviderError
from debridarr.domain.entities.sources import IdType, SourceKind
from debridarr.infrastructure.torbox.search_api import HttpxSearchApiClient

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_BASE = "https://search-api.torbox.app"
_MOVIE_URL = f"{_BASE}/torrents/imdb_id:tt0111161"


@pytest.fixture()
def client() -> HttpxSearchApiClient:
    return HttpxSearchApiClient(http_client=httpx.AsyncClient(), base_url=_BASE)


_TORRENTS_RESPONSE = {
    "success": True,
    "error": None,
    "detail": "Found torrents.",
    "data": {
        "metadata": {"titles": ["The Shawshank Redemption"], "tmdb_id": 278},
        "torrents": [
            {
                "hash": "A" * 40,
                "raw_title": "The.Shawshank.Redemption.1994.1080p.BluRay.x264",
                "size": 8_000_000_000,
                "last_known_seeders": 42,
                "age": "12d",
                "tracker": "TorrentGalaxy",
                "cached": True,
            },
            {
                "hash": "b" * 40,
                "raw_title": "The.Shawshank.Redemption.1994.720p",
                "last_known_seeders": 3,
            },
        ],
    },
}


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestFetchSources:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_torrents(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).respond(json=_TORRENTS_RESPONSE)

        result = await client.fetch_sources(
            SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="key"
        )

        assert [s.content_id for s in result.sources] == ["a" * 40, "b" * 40]
        assert result.sources[0].indexer == "TorrentGalaxy"
        assert result.metadata is not None
        assert result.metadata.titles == ("The Shawshank Redemption",)
        assert result.metadata.tmdb_id == 278

    @respx.mock
    @pytest.mark.asyncio()
    async def test_sends_bearer_and_params(
        self, client: HttpxSearchApiClient
    ) -> None:
        route = respx.get(f"{_BASE}/torrents/imdb_id:tt0944947").respond(
            json={"success": True, "data": {"torrents": []}}
        )

        await client.fetch_sources(
            SourceKind.TORRENT,
            IdType.IMDB,
            "tt0944947",
            api_key="key",
            season=1,
            episode=2,
            search_user_engines=True,
        )

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer key"
        assert request.url.params["season"] == "1"
        assert request.url.params["episode"] == "2"
        assert request.url.params["search_user_engines"] == "true"
        assert request.url.params["metadata"] == "true"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_usenet(self, client: HttpxSearchApiClient) -> None:
        route = respx.get(f"{_BASE}/usenet/kitsu_id:46474").respond(
            json={
                "success": True,
                "data": {"nzbs": [{"hash": "n1", "title": "Frieren 01", "nzb": "u"}]},
            }
        )

        result = await client.fetch_sources(
            SourceKind.USENET, IdType.KITSU, "46474", api_key="key", episode=1
        )

        assert [s.kind for s in result.sources] == [SourceKind.USENET]
        assert result.sources[0].nzb == "u"
        assert result.metadata is None
        request = route.calls.last.request
        assert request.url.params["check_cache"] == "true"
        assert "season" not in request.url.params

    @respx.mock
    @pytest.mark.asyncio()
    async def test_missing_data_is_empty(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).respond(json={"success": True, "data": None})

        result = await client.fetch_sources(
            SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="key"
        )

        assert result.sources == ()


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_bad_token(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).respond(
            json={"success": False, "error": "BAD_TOKEN", "detail": "Invalid key"}
        )

        with pytest.raises(AuthError) as exc_info:
            await client.fetch_sources(
                SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="bad"
            )
        assert exc_info.value.error_code == "BAD_TOKEN"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_401_without_json(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).respond(401, text="Unauthorized")

        with pytest.raises(AuthError):
            await client.fetch_sources(
                SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="bad"
            )

    @respx.mock
    @pytest.mark.asyncio()
    async def test_unsuccessful_envelope(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).respond(
            json={"success": False, "error": "DATABASE_ERROR", "detail": "down"}
        )

        with pytest.raises(ProviderError) as exc_info:
            await client.fetch_sources(
                SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="key"
            )
        assert exc_info.value.error_code == "DATABASE_ERROR"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_server_error(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).respond(500, json={"detail": "boom"})

        with pytest.raises(ProviderError) as exc_info:
            await client.fetch_sources(
                SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="key"
            )
        assert exc_info.value.error_code == "HTTP_500"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_invalid_json(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).respond(502, text="<html>Bad Gateway</html>")

        with pytest.raises(ProviderError) as exc_info:
            await client.fetch_sources(
                SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="key"
            )
        assert exc_info.value.error_code == "HTTP_502"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_network_error(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(ProviderError) as exc_info:
            await client.fetch_sources(
                SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="key"
            )
        assert exc_info.value.error_code == "NETWORK_ERROR"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_timeout(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(ProviderError) as exc_info:
            await client.fetch_sources(
                SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="key"
            )
        assert exc_info.value.error_code == "TIMEOUT"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_data_not_object(self, client: HttpxSearchApiClient) -> None:
        respx.get(_MOVIE_URL).respond(json={"success": True, "data": []})

        with pytest.raises(ProviderError):
            await client.fetch_sources(
                SourceKind.TORRENT, IdType.IMDB, "tt0111161", api_key="key"
            )
