"""Tests for PremiumizeResolver (cache check + directdl listing)."""

from __future__ import annotations

import httpx
import pytest
import respx

from debridarr.domain.entities.sources import (
    AccountFailure,
    CandidateSource,
    FilesFound,
    MatchContext,
    SourceKind,
)
from debridarr.infrastructure.debrid.premiumize import PremiumizeResolver

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_BASE = "https://www.premiumize.me"
_CHECK_URL = f"{_BASE}/api/cache/check"
_DIRECTDL_URL = f"{_BASE}/api/transfer/directdl"
_HASH_A = "a" * 40
_HASH_B = "b" * 40


@pytest.fixture()
def resolver() -> PremiumizeResolver:
    return PremiumizeResolver(http_client=httpx.AsyncClient(), base_url=_BASE)


def _make_source(content_id: str, title: str = "Movie.2010.1080p") -> CandidateSource:
    return CandidateSource(content_id=content_id, title=title, kind=SourceKind.TORRENT)


_DIRECTDL_RESPONSE = {
    "status": "success",
    "content": [
        {"path": "Movie.2010.1080p/Movie.2010.1080p.mkv", "size": 8_000_000_000},
        {"path": "Movie.2010.1080p/Movie.2010.1080p.nfo", "size": 2_000},
    ],
}


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestResolve:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_lists_only_cached(self, resolver: PremiumizeResolver) -> None:
        check = respx.get(_CHECK_URL).respond(
            json={"status": "success", "response": [True, False]}
        )
        directdl = respx.post(_DIRECTDL_URL).respond(json=_DIRECTDL_RESPONSE)

        outcome = await resolver.resolve(
            "pm-key",
            [_make_source(_HASH_A), _make_source(_HASH_B)],
            MatchContext(),
        )

        assert isinstance(outcome, FilesFound)
        [resolved] = outcome.files
        assert resolved.source_id == _HASH_A
        assert resolved.filename == "Movie.2010.1080p.mkv"
        assert resolved.index == 0
        assert resolved.account.provider_id == "premiumize"
        assert resolved.account.cached is True

        assert check.calls.last.request.url.params["apikey"] == "pm-key"
        assert check.calls.last.request.url.params.get_list("items[]") == [
            _HASH_A,
            _HASH_B,
        ]
        assert directdl.call_count == 1
        body = directdl.calls.last.request.content.decode()
        assert f"magnet%3A%3Fxt%3Durn%3Abtih%3A{_HASH_A}" in body

    @respx.mock
    @pytest.mark.asyncio()
    async def test_nothing_cached_skips_directdl(
        self, resolver: PremiumizeResolver
    ) -> None:
        respx.get(_CHECK_URL).respond(
            json={"status": "success", "response": [False]}
        )
        directdl = respx.post(_DIRECTDL_URL)

        outcome = await resolver.resolve(
            "pm-key", [_make_source(_HASH_A)], MatchContext()
        )

        assert outcome == FilesFound(provider_id="premiumize")
        assert not directdl.called

    @respx.mock
    @pytest.mark.asyncio()
    async def test_failed_listing_drops_source(
        self, resolver: PremiumizeResolver
    ) -> None:
        respx.get(_CHECK_URL).respond(
            json={"status": "success", "response": [True]}
        )
        respx.post(_DIRECTDL_URL).respond(
            json={"status": "error", "message": "content not available"}
        )

        outcome = await resolver.resolve(
            "pm-key", [_make_source(_HASH_A)], MatchContext()
        )

        assert outcome == FilesFound(provider_id="premiumize")


# ---------------------------------------------------------------------------
# Account failures
# ---------------------------------------------------------------------------


class TestFailures:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_bad_key(self, resolver: PremiumizeResolver) -> None:
        respx.get(_CHECK_URL).respond(
            json={"status": "error", "message": "Not logged in."}
        )

        outcome = await resolver.resolve(
            "bad", [_make_source(_HASH_A)], MatchContext()
        )

        assert isinstance(outcome, AccountFailure)
        assert outcome.provider_id == "premiumize"
        assert outcome.title == "Invalid Credentials"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_auth_error_during_listing_fails_account(
        self, resolver: PremiumizeResolver
    ) -> None:
        respx.get(_CHECK_URL).respond(
            json={"status": "success", "response": [True]}
        )
        respx.post(_DIRECTDL_URL).respond(401)

        outcome = await resolver.resolve(
            "pm-key", [_make_source(_HASH_A)], MatchContext()
        )

        assert isinstance(outcome, AccountFailure)
        assert outcome.title == "Invalid Credentials"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_other_error_on_check(self, resolver: PremiumizeResolver) -> None:
        respx.get(_CHECK_URL).respond(
            json={"status": "error", "message": "Internal problem"}
        )

        outcome = await resolver.resolve(
            "pm-key", [_make_source(_HASH_A)], MatchContext()
        )

        assert isinstance(outcome, AccountFailure)
        assert outcome.title == "Error"
        assert "Internal problem" in outcome.description

    @respx.mock
    @pytest.mark.asyncio()
    async def test_network_error(self, resolver: PremiumizeResolver) -> None:
        respx.get(_CHECK_URL).mock(side_effect=httpx.ConnectError("refused"))

        outcome = await resolver.resolve(
            "pm-key", [_make_source(_HASH_A)], MatchContext()
        )

        assert isinstance(outcome, AccountFailure)
        assert outcome.title == "Network Error"
