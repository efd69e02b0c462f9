"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["memory", "diskcache"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseModel):
    """Cache configuration (backend-agnostic)."""

    backend: CacheBackendName = Field(
        default="diskcache",
        description="Cache backend: 'diskcache' (SQLite) or 'memory' (in-process)",
    )
    directory: Path = Field(
        default=Path("./.cache/debridarr"),
        validation_alias=AliasChoices("directory", "dir"),
        description="Diskcache SQLite DB path (only when backend=diskcache)",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (diskcache semaphore limit)",
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)


class SearchConfig(BaseModel):
    """Search provider (TorBox search API) settings."""

    base_url: str = Field(
        default="https://search-api.torbox.app",
        description="Base URL of the search API.",
    )
    cache_ttl_seconds: int = Field(
        default=3600,
        description="TTL for cached candidate-source lists (seconds).",
    )
    metadata_cache_ttl_seconds: int = Field(
        default=86_400,
        description="TTL for cached title metadata (seconds).",
    )

    @field_validator("cache_ttl_seconds", "metadata_cache_ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache TTLs must be >= 0")
        return v


class DebridConfig(BaseModel):
    """Availability resolver settings."""

    torbox_base_url: str = Field(
        default="https://api.torbox.app",
        description="Base URL of the TorBox main API.",
    )
    premiumize_base_url: str = Field(
        default="https://www.premiumize.me",
        description="Base URL of the Premiumize API.",
    )
    account_timeout_seconds: float = Field(
        default=20.0,
        description="Per-account availability lookup timeout (seconds).",
    )
    match_threshold: float = Field(
        default=0.7,
        description="Minimum file-match confidence to keep a file.",
    )
    min_file_size_ratio: float = Field(
        default=0.5,
        description="Movies: keep video files at least this fraction of the largest.",
    )
    max_concurrent_requests: int = Field(
        default=5,
        description="Max parallel per-source requests against one account.",
    )

    @field_validator("account_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("account_timeout_seconds must be > 0")
        return v

    @field_validator("match_threshold", "min_file_size_ratio")
    @classmethod
    def _validate_ratio(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("must be between 0 and 1")
        return v

    @field_validator("max_concurrent_requests")
    @classmethod
    def _validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrent_requests must be >= 1")
        return v


class StreamConfig(BaseModel):
    """Stream assembly settings."""

    base_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL of the playback resolution endpoint.",
    )
    addon_name: str = Field(
        default="TorBox Search",
        description="Name shown in every stream title.",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/search/debrid/stream).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    app_name: str = Field(default="debridarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for outgoing API calls.",
    )
    http_user_agent: str = Field(
        default="Debridarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # App-level TMDB key, used when the user has no access token of their own.
    tmdb_api_key: str | None = Field(
        default=None,
        description="TMDB API key for season metadata enrichment.",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    debrid: DebridConfig = Field(default_factory=DebridConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                "backend": self.cache.backend,
                "dir": str(self.cache.directory),
                "max_concurrent": self.cache.max_concurrent,
            },
            "search": self.search.model_dump(),
            "debrid": self.debrid.model_dump(),
            "stream": self.stream.model_dump(),
            "tmdb_api_key": "***" if self.tmdb_api_key else None,
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read DEBRIDARR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - DEBRIDARR_LOG_LEVEL
    - DEBRIDARR_SEARCH_CACHE_TTL_SECONDS
    - DEBRIDARR_STREAM_BASE_URL
    - DEBRIDARR_CACHE_BACKEND
    - DEBRIDARR_DEBRID_MIN_FILE_SIZE_RATIO
    """

    model_config = SettingsConfigDict(
        env_prefix="DEBRIDARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_max_concurrent: Optional[int] = None

    search_base_url: Optional[str] = None
    search_cache_ttl_seconds: Optional[int] = None
    search_metadata_cache_ttl_seconds: Optional[int] = None

    debrid_torbox_base_url: Optional[str] = None
    debrid_premiumize_base_url: Optional[str] = None
    debrid_account_timeout_seconds: Optional[float] = None
    debrid_match_threshold: Optional[float] = None
    debrid_min_file_size_ratio: Optional[float] = None
    debrid_max_concurrent_requests: Optional[int] = None

    stream_base_url: Optional[str] = None
    stream_addon_name: Optional[str] = None

    tmdb_api_key: Optional[str] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
