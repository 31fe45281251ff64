"""
Build the underwriting partner payload from an accepted shipment.

Pure transforms: the customer record is resolved by the caller (usually
reused from the validation pass), so no I/O happens here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta

from app.core.config import settings as app_settings
from app.core.constants import PipelineVariant, TransportMode
from app.pipeline.models import (
    CustomerDetail,
    PayloadShipment,
    ShipmentDetail,
    ShipmentValue,
    UnderwritingPayload,
)
from app.validation.carriers import resolve_carrier

DEFAULT_CARRIER_CODE = "FX"
ETA_CLOCK_SUFFIX = "T00:00:00.000Z"


def add_business_days(start: date, days: int) -> date:
    """Advance ``start`` by ``days`` weekdays, skipping Saturdays and Sundays."""
    current = start
    remaining = days
    while remaining > 0:
        current += timedelta(days=1)
        if current.weekday() < 5:
            remaining -= 1
    return current


def pickup_date(pickup_at: str) -> date:
    """Calendar date of a ``YYYY-MM-DD HH:MM:SS`` pickup timestamp."""
    return datetime.strptime(pickup_at.strip()[:10], "%Y-%m-%d").date()


class PayloadBuilder(ABC):
    """
    Maps shipment + customer to the partner schema.

    Subclasses only decide carrier code and ETA.
    """

    variant: PipelineVariant

    def __init__(
        self,
        source_country: str | None = None,
        currency: str | None = None,
    ) -> None:
        self.source_country = source_country or app_settings.SOURCE_COUNTRY
        self.currency = currency or app_settings.LOCAL_CURRENCY

    def build(self, shipment: ShipmentDetail, customer: CustomerDetail | None) -> UnderwritingPayload:
        customer = customer or CustomerDetail()
        carrier_code, eta = self.carrier_and_eta(shipment)
        registered = customer.registered_address

        return UnderwritingPayload(
            transport_mode=TransportMode.AIR,
            shipment=PayloadShipment(
                awb=shipment.awb,
                departure_date=shipment.pickup_at,
                origin=self.source_country,
                destination=shipment.destination_country,
                eta=eta,
                carrier_code=carrier_code,
                value=ShipmentValue(amount=shipment.declared_value, currency=self.currency),
                goods_description=shipment.description,
            ),
            customer_name=customer.full_name,
            customer_country=(registered.country_code if registered and registered.country_code else self.source_country),
            customer_email=customer.email,
        )

    @abstractmethod
    def carrier_and_eta(self, shipment: ShipmentDetail) -> tuple[str, str]:
        """Carrier code and ETA string for the partner."""


class StaticCarrierPayloadBuilder(PayloadBuilder):
    """Static carrier; ETA is reported as the pickup timestamp."""

    variant = PipelineVariant.CIP_WINDOW

    def carrier_and_eta(self, shipment: ShipmentDetail) -> tuple[str, str]:
        return DEFAULT_CARRIER_CODE, shipment.pickup_at


class CarrierTablePayloadBuilder(PayloadBuilder):
    """Carrier and transit days from the carrier table; ETA in business days."""

    variant = PipelineVariant.CUTOFF_VALUE

    def carrier_and_eta(self, shipment: ShipmentDetail) -> tuple[str, str]:
        route = resolve_carrier(shipment.service_type, shipment.destination_country)
        if route is None:
            # Validation rejects these; mapping one anyway keeps the static carrier
            return DEFAULT_CARRIER_CODE, shipment.pickup_at

        eta_date = add_business_days(pickup_date(shipment.pickup_at), route.business_days)
        return route.carrier_code, f"{eta_date.isoformat()}{ETA_CLOCK_SUFFIX}"


PAYLOAD_BUILDERS: dict[PipelineVariant, type[PayloadBuilder]] = {
    PipelineVariant.CIP_WINDOW: StaticCarrierPayloadBuilder,
    PipelineVariant.CUTOFF_VALUE: CarrierTablePayloadBuilder,
}


def get_payload_builder(variant: PipelineVariant, **kwargs) -> PayloadBuilder:
    return PAYLOAD_BUILDERS[PipelineVariant(variant)](**kwargs)
