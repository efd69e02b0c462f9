"""Convert raw search-API records into CandidateSource entities."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from debridarr.domain.entities.sources import (
    CandidateSource,
    ProviderMetadata,
    SourceKind,
)

log = structlog.get_logger(__name__)


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_bool(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def convert_record(record: dict[str, Any], kind: SourceKind) -> CandidateSource | None:
    """Convert one record; returns None when it has no usable hash."""
    content_id = str(record.get("hash") or "").strip().lower()
    if not content_id:
        return None

    title = record.get("raw_title") or record.get("title") or content_id
    seeders = _to_int(record.get("last_known_seeders", record.get("seeders")))

    return CandidateSource(
        content_id=content_id,
        title=str(title),
        kind=kind,
        size=_to_int(record.get("size")),
        seeders=seeders if seeders is not None and seeders >= 0 else None,
        age=record.get("age") or None,
        indexer=record.get("tracker") or record.get("indexer") or None,
        cached=_to_bool(record.get("cached")),
        user_submitted=bool(record.get("user_search", False)),
        nzb=record.get("nzb") or None,
    )


def convert_records(
    records: Iterable[dict[str, Any]] | None,
    kind: SourceKind,
) -> list[CandidateSource]:
    """Convert records, keeping provider order and the first of duplicate hashes."""
    seen: set[str] = set()
    sources: list[CandidateSource] = []
    skipped = 0
    for record in records or ():
        if not isinstance(record, dict):
            skipped += 1
            continue
        source = convert_record(record, kind)
        if source is None or source.content_id in seen:
            skipped += 1
            continue
        seen.add(source.content_id)
        sources.append(source)

    if skipped:
        log.debug("search_records_skipped", kind=kind.value, skipped=skipped)
    return sources


def convert_metadata(raw: dict[str, Any] | None) -> ProviderMetadata | None:
    if not raw:
        return None
    titles = raw.get("titles") or []
    if isinstance(titles, str):
        titles = [titles]
    # Unique, first occurrence wins.
    unique = tuple(dict.fromkeys(str(t) for t in titles if t))
    return ProviderMetadata(titles=unique, tmdb_id=_to_int(raw.get("tmdb_id")))
