from datetime import date
from decimal import Decimal

import pytest

from app.core.constants import PipelineVariant
from app.submission.payload_builder import (
    CarrierTablePayloadBuilder,
    PayloadBuilder,
    StaticCarrierPayloadBuilder,
    add_business_days,
    get_payload_builder,
)

from fakes import make_customer, make_shipment


def test_add_business_days_skips_weekend():
    friday = date(2025, 3, 7)
    assert add_business_days(friday, 1) == date(2025, 3, 10)
    assert add_business_days(friday, 0) == friday


class TestStaticCarrierPayloadBuilder:
    def test_maps_shipment_and_customer(self):
        builder = StaticCarrierPayloadBuilder(source_country="IN", currency="INR")

        payload = builder.build(make_shipment(), make_customer())

        assert payload.transport_mode == "air"
        assert payload.shipment.carrier_code == "FX"
        assert payload.shipment.eta == "2025-03-05 23:30:00"
        assert payload.shipment.departure_date == "2025-03-05 23:30:00"
        assert payload.shipment.origin == "IN"
        assert payload.shipment.value.amount == Decimal("5000")
        assert payload.shipment.value.currency == "INR"
        assert payload.customer_name == "Ravi Kumar"
        assert payload.customer_country == "IN"

    def test_request_uses_partner_field_names(self):
        builder = StaticCarrierPayloadBuilder(source_country="IN", currency="INR")

        body = builder.build(make_shipment(), make_customer()).to_request()

        assert body["transportMode"] == "air"
        assert body["customerName"] == "Ravi Kumar"
        assert body["customerEmail"] == "ravi@acme.example"
        assert body["shipment"]["departureDate"] == "2025-03-05 23:30:00"
        assert body["shipment"]["carrierCode"] == "FX"
        assert body["shipment"]["goods_description"] == "Cotton garments"
        assert body["shipment"]["value"] == {"amount": 5000, "currency": "INR"}
        assert isinstance(body["shipment"]["value"]["amount"], int)

    def test_fractional_value_is_sent_as_json_number(self):
        builder = StaticCarrierPayloadBuilder(source_country="IN", currency="INR")

        body = builder.build(make_shipment(declared_value=Decimal("1234.50")), make_customer()).to_request()

        assert body["shipment"]["value"]["amount"] == 1234.5
        assert isinstance(body["shipment"]["value"]["amount"], float)

    def test_registered_address_country_wins(self):
        from app.pipeline.models import CustomerAddress

        customer = make_customer(
            addresses=(
                CustomerAddress(label="Pickup Address", country_code="AE"),
                CustomerAddress(label="Registered Address", country_code="SG"),
            )
        )
        payload = StaticCarrierPayloadBuilder(source_country="IN").build(make_shipment(), customer)

        assert payload.customer_country == "SG"

    def test_missing_customer_defaults_to_source_country(self):
        payload = StaticCarrierPayloadBuilder(source_country="IN").build(make_shipment(), None)

        assert payload.customer_country == "IN"
        assert payload.customer_name == ""
        assert payload.customer_email == ""


class TestCarrierTablePayloadBuilder:
    def test_eta_in_business_days_from_pickup(self):
        builder = CarrierTablePayloadBuilder(source_country="IN", currency="INR")
        shipment = make_shipment(pickup_at="2025-03-07 10:00:00", service_type="SHIP+", destination_country="US")

        payload = builder.build(shipment, make_customer())

        assert payload.shipment.carrier_code == "Ship+"
        assert payload.shipment.eta == "2025-03-28T00:00:00.000Z"

    def test_uk_alias_uses_gb_route(self):
        builder = CarrierTablePayloadBuilder(source_country="IN", currency="INR")
        shipment = make_shipment(pickup_at="2025-03-03 09:00:00", service_type="ShipD", destination_country="UK")

        payload = builder.build(shipment, make_customer())

        assert payload.shipment.carrier_code == "ShipD"
        assert payload.shipment.eta == "2025-03-13T00:00:00.000Z"
        assert payload.shipment.destination == "UK"


def test_get_payload_builder_by_variant():
    assert isinstance(get_payload_builder(PipelineVariant.CIP_WINDOW), StaticCarrierPayloadBuilder)
    assert isinstance(
        get_payload_builder("CUTOFF_VALUE", source_country="IN", currency="INR"),
        CarrierTablePayloadBuilder,
    )


def test_base_builder_requires_carrier_and_eta():
    with pytest.raises(TypeError):
        PayloadBuilder(source_country="IN", currency="INR")
