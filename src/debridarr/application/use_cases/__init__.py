from .stream_search import (
    TORRENT_CAPABILITY,
    USENET_CAPABILITY,
    SourceCapability,
    StreamSearchUseCase,
    calculate_absolute_episode,
    capability_for,
)

__all__ = [
    "TORRENT_CAPABILITY",
    "USENET_CAPABILITY",
    "SourceCapability",
    "StreamSearchUseCase",
    "calculate_absolute_episode",
    "capability_for",
]
