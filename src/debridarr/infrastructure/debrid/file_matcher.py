"""File selection inside multi-file sources.

Pure transformation logic, no I/O. Decides which files of a cached
source satisfy the request:

- episode requests: best-scoring season+episode matches, then an
  absolute-episode retry; unmatched multi-file sources yield nothing;
- movie requests: every video file close in size to the largest one
  (main feature, or each feature of a compilation).

Uses **guessit** to parse filenames and **rapidfuzz** for title checks.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import PurePosixPath

import structlog
from guessit import guessit
from rapidfuzz import fuzz
from unidecode import unidecode

from debridarr.domain.entities.sources import MatchContext

log = structlog.get_logger(__name__)

VIDEO_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".3gp",
        ".avi",
        ".flv",
        ".m2ts",
        ".m4v",
        ".mkv",
        ".mov",
        ".mp4",
        ".mpeg",
        ".mpg",
        ".mts",
        ".ogm",
        ".ts",
        ".vob",
        ".webm",
        ".wmv",
    }
)

_EXTRA_RE = re.compile(
    r"(?i)(?:^|[\W_])(sample|trailer|featurette|extras|"
    r"behind[\W_]the[\W_]scenes|deleted[\W_]scenes|ncop|nced)(?:[\W_]|$)"
)

_PUNCT_RE = re.compile(r"[^\w\s]")

EXACT_SCORE = 1.0
SEASONLESS_SCORE = 0.9
ABSOLUTE_SCORE = 0.85
EPISODE_ONLY_SCORE = 0.75


@dataclass(frozen=True)
class DebridFileEntry:
    """A file inside a source as listed by a debrid API."""

    name: str  # may include folders ("Show S01/Show.S01E01.mkv")
    size: int | None
    index: int

    @property
    def basename(self) -> str:
        return PurePosixPath(self.name.replace("\\", "/")).name


@dataclass(frozen=True)
class FileMatch:
    file: DebridFileEntry
    confidence: float


def is_video_file(name: str) -> bool:
    return PurePosixPath(name.lower().replace("\\", "/")).suffix in VIDEO_EXTENSIONS


def is_extra_file(name: str) -> bool:
    """Samples, trailers and bonus material."""
    return _EXTRA_RE.search(PurePosixPath(name.replace("\\", "/")).name) is not None


def _as_int_list(value: object) -> list[int]:
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    return [int(v) for v in items if isinstance(v, int)]


def parse_episode_info(name: str) -> tuple[int | None, list[int]]:
    """Return (season, episodes) parsed from a file path."""
    info = guessit(name, {"type": "episode"})
    seasons = _as_int_list(info.get("season"))
    episodes = _as_int_list(info.get("episode"))
    if not episodes:
        episodes = _as_int_list(info.get("absolute_episode"))
    return (seasons[-1] if seasons else None), episodes


def _normalize(text: str) -> str:
    text = unidecode(text.lower())
    text = _PUNCT_RE.sub(" ", text)
    return " ".join(text.split())


def title_similarity(candidate: str, titles: Sequence[str]) -> float:
    """Best fuzzy similarity (0..1) of *candidate* against *titles*."""
    norm = _normalize(candidate)
    if not norm:
        return 0.0
    best = 0.0
    for title in titles:
        ref = _normalize(title)
        if not ref:
            continue
        best = max(best, fuzz.token_set_ratio(norm, ref) / 100.0)
    return best


def _episode_score(
    file_season: int | None,
    file_episodes: list[int],
    context: MatchContext,
) -> float:
    if context.episode not in file_episodes:
        return 0.0
    if context.season is None:
        return SEASONLESS_SCORE
    if file_season == context.season:
        return EXACT_SCORE
    if file_season is None:
        return EPISODE_ONLY_SCORE
    return 0.0


def _select_movie_files(
    videos: list[DebridFileEntry], min_size_ratio: float
) -> list[FileMatch]:
    largest = max((f.size or 0) for f in videos)
    if largest <= 0:
        return [FileMatch(f, EXACT_SCORE) for f in videos]
    cutoff = largest * min_size_ratio
    return [FileMatch(f, EXACT_SCORE) for f in videos if (f.size or 0) >= cutoff]


def _title_guard(
    file: DebridFileEntry,
    source_title: str,
    context: MatchContext,
    threshold: float,
) -> bool:
    """True when the file plausibly belongs to one of the known titles."""
    if not context.titles:
        return True
    file_title = str(guessit(file.name).get("title", ""))
    return (
        title_similarity(file_title, context.titles) >= threshold
        or title_similarity(source_title, context.titles) >= threshold
    )


def select_files(
    files: Sequence[DebridFileEntry],
    context: MatchContext,
    *,
    source_title: str = "",
    threshold: float = 0.7,
    min_size_ratio: float = 0.5,
) -> list[FileMatch]:
    """Pick the files of one source that satisfy *context*.

    Returns an empty list rather than a low-confidence guess.
    """
    videos = [f for f in files if is_video_file(f.name) and not is_extra_file(f.name)]
    if not videos:
        return []

    if not context.has_episode:
        return _select_movie_files(videos, min_size_ratio)

    parsed = [(f, *parse_episode_info(f.name)) for f in videos]

    matches: list[FileMatch] = []
    for f, season, episodes in parsed:
        score = _episode_score(season, episodes, context)
        if score > 0 and score >= threshold:
            matches.append(FileMatch(f, score))
    if matches:
        # Strongest tier only; SxxEyy hits outrank bare episode numbers.
        best = max(m.confidence for m in matches)
        return [m for m in matches if m.confidence == best]

    if context.absolute_episode is not None:
        matches = [
            FileMatch(f, ABSOLUTE_SCORE)
            for f, _, episodes in parsed
            if context.absolute_episode in episodes and ABSOLUTE_SCORE >= threshold
        ]
        if matches:
            return matches

    # A lone video file without episode markers was matched by the search
    # provider itself; trust it unless its title contradicts the request.
    if len(parsed) == 1 and not parsed[0][2]:
        lone = parsed[0][0]
        if _title_guard(lone, source_title, context, threshold):
            return [FileMatch(lone, threshold)]

    log.debug(
        "file_match_none",
        source_title=source_title,
        season=context.season,
        episode=context.episode,
        absolute_episode=context.absolute_episode,
        video_files=len(videos),
    )
    return []
