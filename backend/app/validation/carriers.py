"""Fixed carrier table: (service type, destination) → carrier + transit days."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CarrierRoute:
    carrier_code: str
    business_days: int


# Destination aliases collapse to one canonical code
DESTINATION_ALIASES: dict[str, str] = {
    "US": "US",
    "USA": "US",
    "GB": "GB",
    "UK": "GB",
}

CARRIER_TABLE: dict[tuple[str, str], CarrierRoute] = {
    ("SHIP+", "US"): CarrierRoute(carrier_code="Ship+", business_days=15),
    ("SHIPD", "US"): CarrierRoute(carrier_code="ShipD", business_days=12),
    ("SHIP+", "GB"): CarrierRoute(carrier_code="Ship+", business_days=10),
    ("SHIPD", "GB"): CarrierRoute(carrier_code="ShipD", business_days=8),
}


def resolve_carrier(service_type: str | None, destination_country: str | None) -> CarrierRoute | None:
    """Return the route for a service/destination pair, or None if unsupported."""
    if not service_type or not destination_country:
        return None
    destination = DESTINATION_ALIASES.get(destination_country.strip().upper())
    if destination is None:
        return None
    return CARRIER_TABLE.get((service_type.strip().upper(), destination))
