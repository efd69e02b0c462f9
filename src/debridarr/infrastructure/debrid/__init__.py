"""Debrid availability resolvers."""

from .base import BaseDebridResolver, SourceListing
from .premiumize import PremiumizeResolver
from .registry import ResolverRegistry, create_default_registry
from .torbox import TorboxResolver

__all__ = [
    "BaseDebridResolver",
    "PremiumizeResolver",
    "ResolverRegistry",
    "SourceListing",
    "TorboxResolver",
    "create_default_registry",
]
