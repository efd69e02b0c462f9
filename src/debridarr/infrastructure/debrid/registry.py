"""Registry that dispatches availability checks to per-service resolvers."""

from __future__ import annotations

from collections.abc import Sequence

import httpx
import structlog

from debridarr.domain.entities.services import service_details
from debridarr.domain.entities.sources import (
    AccountFailure,
    AvailabilityOutcome,
    CandidateSource,
    MatchContext,
)
from debridarr.domain.ports.availability import AvailabilityResolverPort
from debridarr.infrastructure.config.schema import DebridConfig

from .premiumize import PremiumizeResolver
from .torbox import TorboxResolver

log = structlog.get_logger(__name__)


class ResolverRegistry:
    """Maps provider ids to availability resolvers."""

    def __init__(self, resolvers: list[AvailabilityResolverPort] | None = None) -> None:
        self._resolvers: dict[str, AvailabilityResolverPort] = {}
        for resolver in resolvers or []:
            self.register(resolver)

    def register(self, resolver: AvailabilityResolverPort) -> None:
        self._resolvers[resolver.provider_id] = resolver
        log.debug("availability_resolver_registered", provider=resolver.provider_id)

    def get(self, provider_id: str) -> AvailabilityResolverPort | None:
        return self._resolvers.get(provider_id)

    @property
    def supported(self) -> list[str]:
        """Provider ids with a registered resolver."""
        return list(self._resolvers.keys())

    async def resolve(
        self,
        provider_id: str,
        credential: str,
        sources: Sequence[CandidateSource],
        context: MatchContext,
    ) -> AvailabilityOutcome:
        """Dispatch to the resolver for *provider_id*.

        Unknown services come back as an ``AccountFailure`` so a single
        misconfigured account never hides the others.
        """
        resolver = self._resolvers.get(provider_id)
        if resolver is None:
            log.warning("availability_resolver_missing", provider=provider_id)
            return AccountFailure(
                provider_id=provider_id,
                title="Unsupported Service",
                description=(
                    f"{service_details(provider_id).name} is not supported "
                    "for availability checks."
                ),
            )
        return await resolver.resolve(credential, sources, context)


def create_default_registry(
    http_client: httpx.AsyncClient, config: DebridConfig
) -> ResolverRegistry:
    """Registry with every built-in resolver, configured from *config*."""
    common = {
        "http_client": http_client,
        "match_threshold": config.match_threshold,
        "min_file_size_ratio": config.min_file_size_ratio,
        "max_concurrent": config.max_concurrent_requests,
    }
    return ResolverRegistry(
        [
            TorboxResolver(base_url=config.torbox_base_url, **common),
            PremiumizeResolver(base_url=config.premiumize_base_url, **common),
        ]
    )
