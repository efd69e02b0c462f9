"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from debridarr.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "debridarr-test",
        "environment": "test",
        "http": {
            "timeout_seconds": 10.0,
            "user_agent": "TestAgent/1.0",
        },
        "logging": {"level": "DEBUG", "format": "console"},
        "cache": {"backend": "diskcache", "dir": str(tmp_path / "cache")},
        "search": {"cache_ttl_seconds": 1800},
        "debrid": {"account_timeout_seconds": 5.0},
        "stream": {"base_url": "https://addon.example.org/"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "debridarr"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 15.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev -> console
        assert config.cache.backend == "diskcache"
        assert config.search.cache_ttl_seconds == 3600
        assert config.debrid.account_timeout_seconds == 20.0
        assert config.stream.addon_name == "TorBox Search"

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "debridarr-test"
        assert config.environment == "test"
        assert config.http_timeout_seconds == 10.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.cache.backend == "diskcache"
        assert config.cache.directory == tmp_path / "cache"
        assert config.search.cache_ttl_seconds == 1800
        assert config.debrid.account_timeout_seconds == 5.0
        assert config.stream.base_url == "https://addon.example.org"

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_partial_override_preserves_defaults(self, tmp_path: Path) -> None:
        """YAML that only sets debrid.match_threshold keeps other defaults."""
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"debrid": {"match_threshold": 0.9}}), "utf-8")

        config = load_config(config_path=path)
        assert config.debrid.match_threshold == 0.9
        assert config.debrid.min_file_size_ratio == 0.5  # default preserved
        assert config.app_name == "debridarr"  # default preserved

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"debrid": {"match_threshold": 1.5}}), "utf-8")

        with pytest.raises(ValidationError):
            load_config(config_path=path)


class TestEnvOverrides:
    """Environment variables override YAML and defaults."""

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DEBRIDARR_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("DEBRIDARR_SEARCH_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("DEBRIDARR_DEBRID_MAX_CONCURRENT_REQUESTS", "2")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.search.cache_ttl_seconds == 60
        assert config.debrid.max_concurrent_requests == 2
        # YAML values not overridden by ENV stay
        assert config.app_name == "debridarr-test"

    def test_env_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEBRIDARR_ENVIRONMENT", "prod")
        monkeypatch.setenv("DEBRIDARR_TMDB_API_KEY", "secret")

        config = load_config()
        assert config.environment == "prod"
        assert config.log_format == "json"  # prod -> json
        assert config.tmdb_api_key == "secret"

    def test_memory_backend_is_opt_in(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEBRIDARR_CACHE_BACKEND", "memory")

        assert load_config().cache.backend == "memory"

    def test_env_overrides_debrid_and_cache_tunables(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DEBRIDARR_DEBRID_MIN_FILE_SIZE_RATIO", "0.25")
        monkeypatch.setenv("DEBRIDARR_DEBRID_TORBOX_BASE_URL", "http://torbox.local")
        monkeypatch.setenv(
            "DEBRIDARR_DEBRID_PREMIUMIZE_BASE_URL", "http://premiumize.local"
        )
        monkeypatch.setenv("DEBRIDARR_CACHE_MAX_CONCURRENT", "3")

        config = load_config()
        assert config.debrid.min_file_size_ratio == 0.25
        assert config.debrid.torbox_base_url == "http://torbox.local"
        assert config.debrid.premiumize_base_url == "http://premiumize.local"
        assert config.cache.max_concurrent == 3

    def test_dotenv_file(self, tmp_path: Path) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("DEBRIDARR_STREAM_ADDON_NAME=My Addon\n", encoding="utf-8")

        try:
            config = load_config(dotenv_path=dotenv)
        finally:
            os.environ.pop("DEBRIDARR_STREAM_ADDON_NAME", None)
        assert config.stream.addon_name == "My Addon"

    def test_dotenv_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides beat everything (highest precedence)."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DEBRIDARR_LOG_LEVEL", "WARNING")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"log_level": "ERROR"},
        )
        assert config.log_level == "ERROR"

    def test_cli_overrides_with_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"http": {"timeout_seconds": 5.0}},
        )
        assert config.http_timeout_seconds == 5.0


class TestSectionedDump:
    def test_secret_is_masked(self) -> None:
        config = load_config(cli_overrides={"tmdb_api_key": "secret"})

        dumped = config.to_sectioned_dict()
        assert dumped["tmdb_api_key"] == "***"
        assert dumped["debrid"]["match_threshold"] == 0.7
        assert dumped["cache"]["backend"] == "diskcache"

    def test_unset_secret(self) -> None:
        assert load_config().to_sectioned_dict()["tmdb_api_key"] is None
