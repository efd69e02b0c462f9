from .availability import AvailabilityResolverPort
from .cache import CachePort
from .metadata import SeasonMetadataPort
from .search_provider import SearchProviderPort

__all__ = [
    "AvailabilityResolverPort",
    "CachePort",
    "SeasonMetadataPort",
    "SearchProviderPort",
]
