"""Tests for the debridarr command line entrypoint."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import respx

from debridarr.interfaces.cli.cli import main

_SEARCH_URL = "https://search-api.torbox.app/torrents/imdb_id:tt0111161"


@pytest.fixture(autouse=True)
def _cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEBRIDARR_CACHE_DIR", str(tmp_path / "cache"))



class TestConfigCommand:
    def test_prints_effective_config(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["config", "--log-level", "ERROR"]) == 0

        dumped = json.loads(capsys.readouterr().out)
        assert dumped["app_name"] == "debridarr"
        assert dumped["logging"]["level"] == "ERROR"
        assert dumped["stream"]["addon_name"] == "TorBox Search"


class TestStreamsCommand:
    def test_invalid_id(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["streams", "bogus:1", "--log-level", "ERROR"]) == 2
        assert capsys.readouterr().out == ""

    def test_malformed_account_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["streams", "tt0111161", "--account", "torbox"])
        assert exc_info.value.code == 2

    def test_missing_account(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["streams", "tt0111161", "--log-level", "ERROR"]) == 0

        [stream] = json.loads(capsys.readouterr().out)["streams"]
        assert stream["name"] == "[❌] TorBox Search Missing Account"
        assert stream["externalUrl"] == "stremio:///"

    def test_streams_as_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        with respx.mock:
            route = respx.get(_SEARCH_URL).respond(
                json={"success": True, "data": {"torrents": []}}
            )
            code = main(
                [
                    "streams",
                    "tt0111161",
                    "--account",
                    "torbox:tb-key",
                    "--log-level",
                    "ERROR",
                ]
            )

        assert code == 0
        assert route.call_count == 1
        assert json.loads(capsys.readouterr().out) == {"streams": []}

    def test_provider_failure_exit_code(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with respx.mock:
            respx.get(_SEARCH_URL).respond(500, json={"detail": "down"})
            code = main(
                [
                    "streams",
                    "tt0111161",
                    "--account",
                    "torbox:tb-key",
                    "--log-level",
                    "ERROR",
                ]
            )

        assert code == 1
        assert capsys.readouterr().out == ""
