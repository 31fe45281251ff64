"""
Business rules deciding whether a shipment qualifies for insurance.

Two rule-set generations exist and are never merged:

    CIP_WINDOW    destination → pickup inside cutoff..CIP window → supplier
    CUTOFF_VALUE  destination → service/carrier → pickup before cutoff
                  → declared value in USD → supplier

Rules run in that fixed order and the first failure wins.  The rule
predicates are plain functions so they can be tested on their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import time
from decimal import Decimal, InvalidOperation

from app.core.constants import PipelineVariant, RejectionReason
from app.pipeline.models import (
    CustomerDetail,
    SettingsSnapshot,
    ShipmentDetail,
    ValidationVerdict,
)
from app.validation.carriers import resolve_carrier


# ═══════════════════════════════════════════════════════════
#  Rule predicates
# ═══════════════════════════════════════════════════════════

def is_destination_allowed(destination_country: str, allowed_countries: frozenset[str]) -> bool:
    return bool(destination_country) and destination_country.strip().upper() in allowed_countries


def is_supplier_allowed(company_name: str | None, allowed_suppliers: tuple[str, ...]) -> bool:
    """
    Fuzzy supplier match: case-insensitive substring in either direction.

    Short names match broadly ("AB" matches "ABC Exports"); kept as-is
    because existing allow-lists rely on it.
    """
    if not company_name:
        return False
    company = company_name.lower()
    return any(
        supplier.lower() in company or company in supplier.lower()
        for supplier in allowed_suppliers
    )


def to_minutes(value: str | time) -> int:
    """Minutes since midnight for ``HH:MM[:SS]`` or a ``time``; seconds are ignored."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute

    hours, minutes = value.strip().split(":")[:2]
    hours_int, minutes_int = int(hours), int(minutes)
    if not (0 <= hours_int < 24 and 0 <= minutes_int < 60):
        raise ValueError(f"Invalid time of day: {value}")
    return hours_int * 60 + minutes_int


def pickup_clock(pickup_at: str) -> str:
    """Time-of-day part of ``YYYY-MM-DD HH:MM:SS`` (or ISO ``T`` form)."""
    normalised = pickup_at.strip().replace("T", " ")
    parts = normalised.split(" ")
    return parts[1] if len(parts) > 1 else parts[0]


def is_pickup_time_valid(pickup_at: str, cutoff_time: str | time, cip_time: str | time) -> bool:
    """
    Pickup falls inside cutoff→CIP, inclusive at both ends.

    When cutoff is later than CIP the window wraps past midnight
    (e.g. 23:00 → 02:00).
    """
    try:
        pickup = to_minutes(pickup_clock(pickup_at))
        cutoff = to_minutes(cutoff_time)
        cip = to_minutes(cip_time)
    except (ValueError, AttributeError):
        return False

    if cutoff <= cip:
        return cutoff <= pickup <= cip
    return pickup >= cutoff or pickup <= cip


def is_pickup_before_cutoff(pickup_at: str, cutoff_time: str | time) -> bool:
    """Pickup strictly before the cutoff (hour:minute comparison)."""
    try:
        return to_minutes(pickup_clock(pickup_at)) < to_minutes(cutoff_time)
    except (ValueError, AttributeError):
        return False


def value_in_usd(declared_value: Decimal, usd_to_inr_rate: Decimal) -> Decimal:
    return Decimal(declared_value) / Decimal(usd_to_inr_rate)


def is_value_above_threshold(
    declared_value: Decimal,
    usd_to_inr_rate: Decimal,
    min_value_usd: Decimal,
) -> bool:
    try:
        return value_in_usd(declared_value, usd_to_inr_rate) >= min_value_usd
    except (InvalidOperation, ZeroDivisionError):
        return False


# ═══════════════════════════════════════════════════════════
#  Validators
# ═══════════════════════════════════════════════════════════

class ShipmentValidator(ABC):
    """Applies one rule-set generation to a single shipment."""

    variant: PipelineVariant

    def validate(
        self,
        shipment: ShipmentDetail,
        customer: CustomerDetail | None,
        settings: SettingsSnapshot,
    ) -> ValidationVerdict:
        customer = customer or CustomerDetail()

        for check in self.rules():
            failure = check(shipment, customer, settings)
            if failure is not None:
                reason, message = failure
                return ValidationVerdict(
                    shipment_id=shipment.awb,
                    valid=False,
                    shipment=shipment,
                    customer=customer,
                    reason=reason,
                    message=message,
                )

        return ValidationVerdict(
            shipment_id=shipment.awb,
            valid=True,
            shipment=shipment,
            customer=customer,
        )

    @abstractmethod
    def rules(self) -> list:
        """Ordered rule checks; each returns None or (reason, message)."""
        ...

    # ─── Rules shared by both generations ──────────────

    @staticmethod
    def _check_destination(shipment, customer, settings):
        if not is_destination_allowed(shipment.destination_country, settings.countries):
            return (
                RejectionReason.DESTINATION_NOT_ALLOWED,
                f"Destination country '{shipment.destination_country}' not allowed. "
                f"Allowed countries: {', '.join(sorted(settings.countries))}",
            )
        return None

    @staticmethod
    def _check_supplier(shipment, customer, settings):
        if not is_supplier_allowed(customer.company_name, settings.suppliers):
            return (
                RejectionReason.SUPPLIER_NOT_ALLOWED,
                f"Supplier '{customer.company_name}' not allowed",
            )
        return None


class CipWindowValidator(ShipmentValidator):
    """Destination, pickup inside cutoff..CIP, supplier."""

    variant = PipelineVariant.CIP_WINDOW

    def rules(self) -> list:
        return [self._check_destination, self._check_pickup_window, self._check_supplier]

    @staticmethod
    def _check_pickup_window(shipment, customer, settings):
        if settings.cip_time is None or not is_pickup_time_valid(
            shipment.pickup_at, settings.cutoff_time, settings.cip_time
        ):
            window_end = settings.cip_time.isoformat() if settings.cip_time else "unset"
            return (
                RejectionReason.PICKUP_TIME_OUT_OF_WINDOW,
                f"Pickup time '{shipment.pickup_at}' not within allowed range "
                f"({settings.cutoff_time.isoformat()} - {window_end})",
            )
        return None


class CutoffValueValidator(ShipmentValidator):
    """Destination, carrier route, pickup before cutoff, USD value, supplier."""

    variant = PipelineVariant.CUTOFF_VALUE

    def rules(self) -> list:
        return [
            self._check_destination,
            self._check_service,
            self._check_cutoff,
            self._check_value,
            self._check_supplier,
        ]

    @staticmethod
    def _check_service(shipment, customer, settings):
        if resolve_carrier(shipment.service_type, shipment.destination_country) is None:
            return (
                RejectionReason.SERVICE_UNSUPPORTED,
                f"Service '{shipment.service_type}' is not offered to "
                f"'{shipment.destination_country}'",
            )
        return None

    @staticmethod
    def _check_cutoff(shipment, customer, settings):
        if not is_pickup_before_cutoff(shipment.pickup_at, settings.cutoff_time):
            return (
                RejectionReason.PICKUP_TIME_OUT_OF_WINDOW,
                f"Pickup time '{shipment.pickup_at}' is not before cutoff "
                f"{settings.cutoff_time.isoformat()}",
            )
        return None

    @staticmethod
    def _check_value(shipment, customer, settings):
        if not is_value_above_threshold(
            shipment.declared_value, settings.usd_to_inr_rate, settings.min_value_usd
        ):
            usd = value_in_usd(shipment.declared_value, settings.usd_to_inr_rate)
            return (
                RejectionReason.VALUE_BELOW_THRESHOLD,
                f"Declared value {shipment.declared_value} ≈ USD {usd:.2f} is below "
                f"the minimum of USD {settings.min_value_usd}",
            )
        return None


VALIDATORS: dict[PipelineVariant, type[ShipmentValidator]] = {
    PipelineVariant.CIP_WINDOW: CipWindowValidator,
    PipelineVariant.CUTOFF_VALUE: CutoffValueValidator,
}


def get_validator(variant: PipelineVariant) -> ShipmentValidator:
    """Validator for the deployment's configured rule-set generation."""
    return VALIDATORS[PipelineVariant(variant)]()
