"""Port for per-account availability checks."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from debridarr.domain.entities.sources import (
    AvailabilityOutcome,
    CandidateSource,
    MatchContext,
)


@runtime_checkable
class AvailabilityResolverPort(Protocol):
    """Determines which candidate sources an account can serve.

    Implementations handle the provider-specific API; the outcome contract
    is the same for every provider. ``resolve`` never raises: account-level
    faults come back as ``AccountFailure``.
    """

    @property
    def provider_id(self) -> str:
        """Service this resolver talks to (e.g. 'torbox', 'premiumize')."""
        ...

    async def resolve(
        self,
        credential: str,
        sources: Sequence[CandidateSource],
        context: MatchContext,
    ) -> AvailabilityOutcome: ...
