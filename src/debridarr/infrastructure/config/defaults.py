"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "debridarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "user_agent": "Debridarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "backend": "diskcache",
        "dir": "./.cache/debridarr",
        "max_concurrent": 10,
    },
    "search": {
        "base_url": "https://search-api.torbox.app",
        "cache_ttl_seconds": 3600,
        "metadata_cache_ttl_seconds": 86_400,
    },
    "debrid": {
        "torbox_base_url": "https://api.torbox.app",
        "premiumize_base_url": "https://www.premiumize.me",
        "account_timeout_seconds": 20.0,
        "match_threshold": 0.7,
        "min_file_size_ratio": 0.5,
        "max_concurrent_requests": 5,
    },
    "stream": {
        "base_url": "http://localhost:3000",
        "addon_name": "TorBox Search",
    },
}
