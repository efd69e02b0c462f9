"""Static details about the debrid/cloud storage services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceDetails:
    id: str
    name: str
    short_name: str


SERVICE_DETAILS: dict[str, ServiceDetails] = {
    s.id: s
    for s in (
        ServiceDetails("torbox", "TorBox", "TB"),
        ServiceDetails("premiumize", "Premiumize", "PM"),
        ServiceDetails("realdebrid", "Real-Debrid", "RD"),
        ServiceDetails("alldebrid", "AllDebrid", "AD"),
        ServiceDetails("debridlink", "Debrid-Link", "DL"),
        ServiceDetails("offcloud", "Offcloud", "OC"),
        ServiceDetails("easydebrid", "EasyDebrid", "ED"),
    )
}


def service_details(provider_id: str) -> ServiceDetails:
    """Details for *provider_id*; unknown ids get a derived short name."""
    details = SERVICE_DETAILS.get(provider_id)
    if details is not None:
        return details
    return ServiceDetails(provider_id, provider_id, provider_id[:2].upper())
