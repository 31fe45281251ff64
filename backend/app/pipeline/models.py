"""
Domain models shared by the reconciliation pipeline.

Logistics and partner records arrive with the remote systems' field names
(``Destination_Country``, ``policyId`` ...).  Aliases translate them into
snake_case attributes; ``populate_by_name`` lets tests build them directly.
"""

from __future__ import annotations

from datetime import time
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from app.core.constants import REGISTERED_ADDRESS_LABEL, RejectionReason, UnderwritingStatus


class ShipmentDetail(BaseModel):
    """A shipment record from the logistics platform."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    awb: str = Field(alias="Name")
    pickup_at: str = Field(default="", alias="Create_Pick_Up_Date")
    destination_country: str = Field(default="", alias="Destination_Country")
    declared_value: Decimal = Field(default=Decimal("0"), alias="Package_Value")
    description: str = Field(default="", alias="Description")
    service_type: str = Field(default="", alias="Service_Type")
    customer_id: str | None = Field(default=None, alias="Customer_ID")

    @field_validator(
        "awb", "pickup_at", "destination_country", "description", "service_type",
        mode="before",
    )
    @classmethod
    def _as_text(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("customer_id", mode="before")
    @classmethod
    def _as_optional_text(cls, value: Any) -> str | None:
        return None if value in (None, "") else str(value)

    @field_validator("declared_value", mode="before")
    @classmethod
    def _as_amount(cls, value: Any) -> Any:
        return Decimal("0") if value in (None, "") else value


class CustomerAddress(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    label: str = ""
    country_code: str | None = None


class CustomerDetail(BaseModel):
    """Customer info + addresses.  Empty when the lookup found nothing."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    last_name: str = ""
    company_name: str | None = None
    email: str = ""
    addresses: tuple[CustomerAddress, ...] = ()

    @classmethod
    def from_api(cls, data: Any) -> "CustomerDetail":
        """
        Build from the logistics customer endpoint response.

        The endpoint returns ``[info, addresses]``; anything else is
        treated as an unknown customer.
        """
        if not isinstance(data, list) or not data:
            return cls()

        info = data[0] if isinstance(data[0], dict) else {}
        raw_addresses = data[1] if len(data) > 1 and isinstance(data[1], list) else []

        return cls(
            name=info.get("name") or "",
            last_name=info.get("last_name") or "",
            company_name=info.get("company_name"),
            email=info.get("email") or "",
            addresses=tuple(
                CustomerAddress(**addr) for addr in raw_addresses if isinstance(addr, dict)
            ),
        )

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()

    @property
    def registered_address(self) -> CustomerAddress | None:
        for addr in self.addresses:
            if addr.label == REGISTERED_ADDRESS_LABEL:
                return addr
        return None


class ValidationVerdict(BaseModel):
    """Outcome of running the business rules against one shipment."""

    model_config = ConfigDict(frozen=True)

    shipment_id: str
    valid: bool
    shipment: ShipmentDetail | None = None
    customer: CustomerDetail | None = None
    reason: RejectionReason | None = None
    message: str = ""


class ShipmentValue(BaseModel):
    amount: Decimal
    currency: str

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, amount: Decimal) -> int | float:
        # The partner expects a JSON number, not pydantic's Decimal string
        return int(amount) if amount == amount.to_integral_value() else float(amount)


class PayloadShipment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    awb: str
    departure_date: str = Field(alias="departureDate")
    origin: str
    destination: str
    eta: str
    carrier_code: str = Field(alias="carrierCode")
    value: ShipmentValue
    goods_description: str


class UnderwritingPayload(BaseModel):
    """Request body for the underwriting partner."""

    model_config = ConfigDict(populate_by_name=True)

    transport_mode: str = Field(alias="transportMode")
    shipment: PayloadShipment
    customer_name: str = Field(alias="customerName")
    customer_country: str = Field(alias="customerCountry")
    customer_email: str = Field(alias="customerEmail")

    def to_request(self) -> dict[str, Any]:
        """Serialise with the partner's field names."""
        return self.model_dump(mode="json", by_alias=True)


class UnderwritingResult(BaseModel):
    """What the partner answered for one shipment."""

    shipment_id: str
    status: str | None = None
    policy_id: str | None = None
    amount: Decimal | None = None
    currency: str
    document_url: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == UnderwritingStatus.SUCCESS and bool(self.policy_id)


class EmailSettings(BaseModel):
    """Who gets notified, and whether notifications are on at all."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    recipients: tuple[str, ...] = ()


class SettingsSnapshot(BaseModel):
    """
    Immutable business configuration for one pipeline run.

    Built from the latest ``reconciliation_settings`` row; see
    ``app.repositories.settings.snapshot_from_row``.
    """

    model_config = ConfigDict(frozen=True)

    suppliers: tuple[str, ...]
    countries: frozenset[str]
    cutoff_time: time
    cip_time: time | None = None
    min_value_usd: Decimal = Decimal("0")
    usd_to_inr_rate: Decimal = Decimal("1")
    max_shipments: int = 0
    email: EmailSettings = EmailSettings()

    def describe(self) -> dict[str, Any]:
        """Compact form for logs and the run record."""
        return {
            "suppliers": len(self.suppliers),
            "countries": sorted(self.countries),
            "cutoff_time": self.cutoff_time.isoformat(),
            "cip_time": self.cip_time.isoformat() if self.cip_time else None,
            "min_value_usd": str(self.min_value_usd),
            "usd_to_inr_rate": str(self.usd_to_inr_rate),
            "max_shipments": self.max_shipments,
            "email_enabled": self.email.enabled,
            "recipients": len(self.email.recipients),
        }
