"""Domain entities for source discovery and stream assembly.

Pure value objects. No framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Union


class SourceKind(str, Enum):
    """Kind of a candidate source returned by the search provider."""

    TORRENT = "torrent"
    USENET = "usenet"


class IdType(str, Enum):
    """Identifier families understood by the search provider."""

    IMDB = "imdb"
    TMDB = "tmdb"
    TVDB = "tvdb"
    KITSU = "kitsu"
    MAL = "mal"
    ANILIST = "anilist"
    ANIDB = "anidb"

    @property
    def search_key(self) -> str:
        """Id type as the search API spells it (``imdb_id``, ``kitsu_id``)."""
        return f"{self.value}_id"


# Anime id families number episodes without seasons.
ANIME_ID_TYPES: frozenset[IdType] = frozenset(
    {IdType.KITSU, IdType.MAL, IdType.ANILIST, IdType.ANIDB}
)

# Sentinel file index for single-file sources (Usenet) and unknown positions.
SINGLE_FILE_INDEX = -1


@dataclass(frozen=True)
class StreamRequest:
    """Parsed stream request.

    Created from a Stremio id: ``tt0111161`` (movie), ``tt0944947:1:5``
    (series, season 1, episode 5) or ``kitsu:1234:7`` (anime, episode 7).
    """

    id_type: IdType
    id: str
    season: int | None = None
    episode: int | None = None

    @property
    def has_episode(self) -> bool:
        return self.episode is not None

    @classmethod
    def from_stremio_id(cls, raw: str) -> StreamRequest:
        """Parse a Stremio id.

        Raises:
            ValueError: If the id is empty, has an unknown prefix or
                non-numeric season/episode parts.
        """
        parts = raw.strip().split(":")
        if not parts or not parts[0]:
            raise ValueError(f"Empty stream id: {raw!r}")

        if parts[0].startswith("tt"):
            id_type, ident, rest = IdType.IMDB, parts[0], parts[1:]
        else:
            try:
                id_type = IdType(parts[0].lower())
            except ValueError:
                raise ValueError(f"Unsupported id type in {raw!r}") from None
            if len(parts) < 2 or not parts[1]:
                raise ValueError(f"Missing id in {raw!r}")
            ident, rest = parts[1], parts[2:]

        try:
            numbers = [int(p) for p in rest]
        except ValueError:
            raise ValueError(f"Invalid season/episode in {raw!r}") from None

        if len(numbers) == 1:
            # Anime ids carry a single running episode number.
            return cls(id_type=id_type, id=ident, episode=numbers[0])
        if len(numbers) >= 2:
            return cls(
                id_type=id_type, id=ident, season=numbers[0], episode=numbers[1]
            )
        return cls(id_type=id_type, id=ident)


@dataclass(frozen=True)
class AccountConfig:
    """A user-held credential for one debrid/cloud storage service."""

    provider_id: str  # "torbox", "premiumize"
    credential: str

    def __repr__(self) -> str:
        return f"AccountConfig(provider_id={self.provider_id!r}, credential='***')"


@dataclass(frozen=True)
class UserConfig:
    """Per-request user configuration (decrypted by the caller)."""

    accounts: tuple[AccountConfig, ...] = ()
    search_user_engines: bool = False
    tmdb_access_token: str | None = None
    search_api_key: str | None = None

    def credential_for(self, provider_id: str) -> str | None:
        for account in self.accounts:
            if account.provider_id == provider_id:
                return account.credential
        return None

    @property
    def provider_credential(self) -> str | None:
        """Credential used against the search provider (TorBox key by default)."""
        return self.search_api_key or self.credential_for("torbox")


@dataclass(frozen=True)
class CandidateSource:
    """A torrent or NZB returned by search, not yet confirmed playable.

    Identity is ``content_id`` (info hash for torrents, NZB hash for Usenet).
    """

    content_id: str
    title: str
    kind: SourceKind
    size: int | None = None
    seeders: int | None = None
    age: str | None = None
    indexer: str | None = None
    cached: bool | None = None
    user_submitted: bool = False
    nzb: str | None = None


@dataclass(frozen=True)
class SeasonInfo:
    """Episode count of one season (season 0 = specials)."""

    number: int
    episode_count: int


@dataclass(frozen=True)
class TitleMetadata:
    """Known titles and optional season layout of a title."""

    titles: tuple[str, ...] = ()
    seasons: tuple[SeasonInfo, ...] | None = None


@dataclass(frozen=True)
class ProviderMetadata:
    """Inline metadata returned by the search provider."""

    titles: tuple[str, ...] = ()
    tmdb_id: int | None = None


@dataclass(frozen=True)
class ProviderResult:
    """Result of one search provider call."""

    sources: tuple[CandidateSource, ...] = ()
    metadata: ProviderMetadata | None = None


@dataclass(frozen=True)
class AccountRef:
    """Which account resolved a file and whether it is already cached there."""

    provider_id: str
    cached: bool


@dataclass(frozen=True)
class ResolvedFile:
    """A playable file inside a candidate source, as seen by one account."""

    source_id: str
    filename: str
    size: int | None
    index: int
    account: AccountRef


@dataclass(frozen=True)
class MatchContext:
    """What the user asked for, as needed by file matching."""

    season: int | None = None
    episode: int | None = None
    absolute_episode: int | None = None
    titles: tuple[str, ...] = ()

    @property
    def has_episode(self) -> bool:
        return self.episode is not None


@dataclass(frozen=True)
class FilesFound:
    """Successful availability lookup for one account."""

    provider_id: str
    files: tuple[ResolvedFile, ...] = ()


@dataclass(frozen=True)
class AccountFailure:
    """Failed availability lookup for one account (rendered as one stream)."""

    provider_id: str
    title: str
    description: str


AvailabilityOutcome = Union[FilesFound, AccountFailure]


@dataclass(frozen=True)
class StreamDescriptor:
    """Stremio protocol Stream object.

    Regular streams carry ``url``; error streams carry only
    ``external_url`` and a description.
    """

    name: str
    description: str
    url: str | None = None
    kind: SourceKind | None = None
    info_hash: str | None = None
    size: int | None = None
    filename: str | None = None
    external_url: str | None = None

    @property
    def is_error(self) -> bool:
        return self.url is None and self.external_url is not None

    def to_stremio(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "description": self.description}
        if self.url is not None:
            data["url"] = self.url
        if self.external_url is not None:
            data["externalUrl"] = self.external_url
        if self.kind is not None:
            data["type"] = self.kind.value
        if self.info_hash:
            data["infoHash"] = self.info_hash
        hints: dict[str, Any] = {}
        if self.size is not None:
            hints["videoSize"] = self.size
        if self.filename:
            hints["filename"] = self.filename
        if hints:
            data["behaviorHints"] = hints
        return data


# ---------------------------------------------------------------------------
# Resolution token blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StoreAuth:
    """Which account the resolution endpoint must use at playback time."""

    store_name: str
    store_credential: str | None = None

    def to_json_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"storeName": self.store_name}
        if self.store_credential is not None:
            data["storeCredential"] = self.store_credential
        return data

    def __repr__(self) -> str:
        return f"StoreAuth(store_name={self.store_name!r}, store_credential='***')"


@dataclass(frozen=True)
class TorrentPlayback:
    """Playback info for a torrent file."""

    id: str
    id_type: str  # search-API spelling: "imdb_id", "kitsu_id"
    hash: str
    title: str
    index: int | None = None
    season: int | None = None
    episode: int | None = None
    absolute_episode: int | None = None
    type: Literal["torrent"] = field(default="torrent", init=False)

    def to_json_dict(self) -> dict[str, Any]:
        parsed_id: dict[str, Any] = {"id": self.id, "type": self.id_type}
        if self.season is not None:
            parsed_id["season"] = str(self.season)
        if self.episode is not None:
            parsed_id["episode"] = str(self.episode)
        if self.absolute_episode is not None:
            parsed_id["absoluteEpisode"] = str(self.absolute_episode)
        data: dict[str, Any] = {
            "parsedId": parsed_id,
            "type": self.type,
            "hash": self.hash,
        }
        if self.index is not None:
            data["index"] = self.index
        data["title"] = self.title
        return data


@dataclass(frozen=True)
class UsenetPlayback:
    """Playback info for an NZB."""

    nzb: str | None
    title: str
    type: Literal["usenet"] = field(default="usenet", init=False)

    def to_json_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.nzb is not None:
            data["nzb"] = self.nzb
        data["title"] = self.title
        return data


PlaybackInfo = Union[TorrentPlayback, UsenetPlayback]
