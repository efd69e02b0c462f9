from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog

from debridarr.domain.entities.errors import ProviderError
from debridarr.domain.entities.sources import (
    AccountConfig,
    SourceKind,
    StreamRequest,
    UserConfig,
)
from debridarr.infrastructure.composition import build_services
from debridarr.infrastructure.config import AppConfig, load_config
from debridarr.infrastructure.logging.setup import configure_logging

log = structlog.get_logger(__name__)


def _account(value: str) -> AccountConfig:
    provider_id, sep, credential = value.partition(":")
    if not sep or not provider_id or not credential:
        raise argparse.ArgumentTypeError(
            f"expected provider:credential, got {value!r}"
        )
    return AccountConfig(provider_id=provider_id.strip().lower(), credential=credential)


def _add_config_flags(parser: argparse.ArgumentParser) -> None:
    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="debridarr")
    sub = parser.add_subparsers(dest="command", required=True)

    streams = sub.add_parser("streams", help="Search and print streams as JSON.")
    streams.add_argument(
        "id",
        help="Stremio id, e.g. tt0111161, tt0944947:1:5 or kitsu:1234:7.",
    )
    streams.add_argument(
        "--kind",
        default=SourceKind.TORRENT.value,
        choices=[k.value for k in SourceKind],
        help="Source kind to search.",
    )
    streams.add_argument(
        "--account",
        dest="accounts",
        action="append",
        type=_account,
        default=[],
        metavar="PROVIDER:CREDENTIAL",
        help="Debrid account (repeatable), e.g. torbox:KEY.",
    )
    streams.add_argument(
        "--search-api-key",
        default=None,
        help="Search API key (defaults to the torbox account's key).",
    )
    streams.add_argument(
        "--search-user-engines",
        action="store_true",
        help="Also query the user's own search engines (bypasses the cache).",
    )
    streams.add_argument(
        "--tmdb-token",
        default=None,
        help="TMDB read access token for season metadata.",
    )
    _add_config_flags(streams)

    config_cmd = sub.add_parser("config", help="Print the effective configuration.")
    _add_config_flags(config_cmd)

    return parser.parse_args(argv)


def _load(args: argparse.Namespace) -> AppConfig:
    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    return load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )


async def _run_streams(
    config: AppConfig, request: StreamRequest, args: argparse.Namespace
) -> dict[str, Any]:
    user = UserConfig(
        accounts=tuple(args.accounts),
        search_user_engines=args.search_user_engines,
        tmdb_access_token=args.tmdb_token,
        search_api_key=args.search_api_key,
    )
    async with build_services(config) as services:
        streams = await services.search_for(SourceKind(args.kind)).execute(
            request, user
        )
    return {"streams": [s.to_stremio() for s in streams]}


def main(argv: Iterable[str] | None = None) -> int:
    """Process entrypoint. Loads config exactly once, then runs the command."""
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)
    config = _load(args)
    configure_logging(config)

    if args.command == "config":
        print(json.dumps(config.to_sectioned_dict(), indent=2))
        return 0

    try:
        request = StreamRequest.from_stremio_id(args.id)
    except ValueError as exc:
        log.error("invalid_stream_id", id=args.id, error=str(exc))
        return 2

    try:
        payload = asyncio.run(_run_streams(config, request, args))
    except ProviderError as exc:
        log.error(
            "search_provider_failed", error_code=exc.error_code, detail=exc.detail
        )
        return 1

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
