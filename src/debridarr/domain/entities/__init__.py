from .errors import (
    AccountError,
    AuthError,
    DebridAccountError,
    DebridarrError,
    MetadataError,
    ProviderError,
)
from .sources import (
    ANIME_ID_TYPES,
    SINGLE_FILE_INDEX,
    AccountConfig,
    AccountFailure,
    AccountRef,
    AvailabilityOutcome,
    CandidateSource,
    FilesFound,
    IdType,
    MatchContext,
    PlaybackInfo,
    ProviderMetadata,
    ProviderResult,
    ResolvedFile,
    SeasonInfo,
    SourceKind,
    StoreAuth,
    StreamDescriptor,
    StreamRequest,
    TitleMetadata,
    TorrentPlayback,
    UsenetPlayback,
    UserConfig,
)

__all__ = [
    "ANIME_ID_TYPES",
    "SINGLE_FILE_INDEX",
    "AccountConfig",
    "AccountError",
    "AccountFailure",
    "AccountRef",
    "AuthError",
    "AvailabilityOutcome",
    "CandidateSource",
    "DebridAccountError",
    "DebridarrError",
    "FilesFound",
    "IdType",
    "MatchContext",
    "MetadataError",
    "PlaybackInfo",
    "ProviderError",
    "ProviderMetadata",
    "ProviderResult",
    "ResolvedFile",
    "SeasonInfo",
    "SourceKind",
    "StoreAuth",
    "StreamDescriptor",
    "StreamRequest",
    "TitleMetadata",
    "TorrentPlayback",
    "UsenetPlayback",
    "UserConfig",
]
