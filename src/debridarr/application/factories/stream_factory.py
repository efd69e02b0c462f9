"""Factory for StreamDescriptor entities.

Turns a (candidate source, resolved file, account) triple into the stream
shown to the user. The URL embeds a self-contained resolution token made
of two blocks:

- ``storeAuth``: which account to use (the only place a credential lives);
- ``playbackInfo``: what to play (hash/NZB, file index, requested episode).

Each block is compact JSON -> base64 -> percent-encoded like JavaScript's
``encodeURIComponent``, so tokens stay byte-compatible with the existing
resolution endpoint.
"""

from __future__ import annotations

import base64
import json
from typing import Any
from urllib.parse import quote, unquote

import structlog

from debridarr.domain.entities.services import service_details
from debridarr.domain.entities.sources import (
    CandidateSource,
    PlaybackInfo,
    ResolvedFile,
    SourceKind,
    StoreAuth,
    StreamDescriptor,
    StreamRequest,
    TorrentPlayback,
    UsenetPlayback,
    UserConfig,
)

log = structlog.get_logger(__name__)

RESOLVE_PATH = "/api/v1/debrid/resolve"
ERROR_EXTERNAL_URL = "stremio:///"

# Characters encodeURIComponent leaves alone besides alphanumerics and "-_.".
_URI_COMPONENT_SAFE = "!~*'()"

_CACHED_GLYPH = "⚡"
_UNCACHED_GLYPH = "⏳"
_ERROR_GLYPH = "❌"


def encode_block(payload: dict[str, Any]) -> str:
    """JSON-encode, base64 and percent-encode one token block.

    Key order is insertion order; same payload gives the same string.
    """
    raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    b64 = base64.b64encode(raw.encode("utf-8")).decode("ascii")
    return quote(b64, safe=_URI_COMPONENT_SAFE)


def decode_token(segment: str) -> dict[str, Any]:
    """Invert ``encode_block`` for one URL path segment.

    Raises:
        ValueError: If the segment is not a valid encoded JSON object.
    """
    try:
        raw = base64.b64decode(unquote(segment), validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValueError(f"Invalid token segment: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Invalid token segment: not a JSON object")
    return data


def _format_description(source: CandidateSource, filename: str | None) -> str:
    lines = [source.title]
    if filename:
        lines.append(filename)

    details: list[str] = []
    if source.indexer:
        details.append(f"🔍 {source.indexer}")
    if source.seeders:
        details.append(f"👤 {source.seeders}")
    if source.age and source.age != "0d":
        details.append(f"🕒 {source.age}")
    if details:
        lines.append(" ".join(details))
    return "\n".join(lines)


class StreamFactory:
    """Builds stream descriptors and their resolution tokens.

    Pure and deterministic: no I/O, no clock, no randomness.
    """

    def __init__(self, *, base_url: str, addon_name: str = "TorBox Search") -> None:
        self.base_url = base_url.rstrip("/")
        self.addon_name = addon_name

    def build_url(
        self, store_auth: StoreAuth, playback: PlaybackInfo, filename: str
    ) -> str:
        return (
            f"{self.base_url}{RESOLVE_PATH}"
            f"/{encode_block(store_auth.to_json_dict())}"
            f"/{encode_block(playback.to_json_dict())}"
            f"/{quote(filename, safe=_URI_COMPONENT_SAFE)}"
        )

    def create_stream(
        self,
        request: StreamRequest,
        source: CandidateSource,
        file: ResolvedFile,
        user: UserConfig,
        *,
        season: int | None = None,
        episode: int | None = None,
        absolute_episode: int | None = None,
    ) -> StreamDescriptor:
        """Create a playable descriptor for one resolved file.

        Args:
            request: The parsed stream request (id and id type).
            source: Candidate source the file belongs to.
            file: File chosen by the availability resolver.
            user: User configuration holding the account credential.
            season: Requested season, echoed into the playback info.
            episode: Requested episode, echoed into the playback info.
            absolute_episode: Running episode index, when known.

        Returns:
            StreamDescriptor whose URL carries the resolution token.
        """
        provider_id = file.account.provider_id
        store_auth = StoreAuth(
            store_name=provider_id,
            store_credential=user.credential_for(provider_id),
        )

        playback: PlaybackInfo
        if source.kind is SourceKind.USENET:
            playback = UsenetPlayback(nzb=source.nzb, title=source.title)
        else:
            playback = TorrentPlayback(
                id=request.id,
                id_type=request.id_type.search_key,
                hash=source.content_id,
                title=source.title,
                index=file.index,
                season=season,
                episode=episode,
                absolute_episode=absolute_episode,
            )

        filename = file.filename or source.title
        glyph = _CACHED_GLYPH if file.account.cached else _UNCACHED_GLYPH
        short = service_details(provider_id).short_name

        return StreamDescriptor(
            name=f"[{short} {glyph}] {self.addon_name}",
            description=_format_description(source, file.filename),
            url=self.build_url(store_auth, playback, filename),
            kind=source.kind,
            info_hash=source.content_id,
            size=file.size if file.size is not None else source.size,
            filename=filename,
        )

    def create_error_stream(self, title: str, description: str) -> StreamDescriptor:
        """Create a non-playable descriptor that surfaces a failure in the list."""
        log.debug("error_stream_created", title=title)
        return StreamDescriptor(
            name=f"[{_ERROR_GLYPH}] {self.addon_name} {title}".rstrip(),
            description=description,
            external_url=ERROR_EXTERNAL_URL,
        )
