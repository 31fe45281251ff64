"""Business rule predicates and the two validator generations."""

from datetime import time
from decimal import Decimal

import pytest

from app.core.constants import PipelineVariant, RejectionReason
from app.validation.business_rules import (
    CipWindowValidator,
    CutoffValueValidator,
    get_validator,
    is_destination_allowed,
    is_pickup_before_cutoff,
    is_pickup_time_valid,
    is_supplier_allowed,
    is_value_above_threshold,
    to_minutes,
)
from app.validation.carriers import resolve_carrier

from fakes import make_customer, make_settings, make_shipment


class TestPredicates:
    def test_destination_is_case_insensitive(self):
        assert is_destination_allowed("us", frozenset({"US"}))
        assert not is_destination_allowed("FR", frozenset({"US"}))
        assert not is_destination_allowed("", frozenset({"US"}))

    def test_supplier_matches_substring_both_ways(self):
        suppliers = ("Acme Exports",)
        assert is_supplier_allowed("ACME EXPORTS PVT LTD", suppliers)
        assert is_supplier_allowed("acme", suppliers)
        assert not is_supplier_allowed("Globex", suppliers)

    def test_missing_company_never_matches(self):
        assert not is_supplier_allowed(None, ("Acme",))
        assert not is_supplier_allowed("", ("Acme",))

    def test_to_minutes_ignores_seconds(self):
        assert to_minutes("22:59:59") == 22 * 60 + 59
        assert to_minutes(time(1, 30, 45)) == 90

    def test_to_minutes_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            to_minutes("24:10")


class TestPickupWindow:
    @pytest.mark.parametrize(
        "pickup, expected",
        [
            ("2025-03-05 23:00:00", True),    # cutoff, inclusive
            ("2025-03-05 23:45:00", True),    # before midnight
            ("2025-03-06 00:30:00", True),    # after midnight
            ("2025-03-06 02:00:00", True),    # CIP, inclusive
            ("2025-03-06 02:01:00", False),
            ("2025-03-05 22:59:00", False),
            ("2025-03-05 12:00:00", False),
        ],
    )
    def test_window_wraps_midnight(self, pickup, expected):
        assert is_pickup_time_valid(pickup, time(23, 0), time(2, 0)) is expected

    def test_same_day_window(self):
        assert is_pickup_time_valid("2025-03-05 10:00:00", "09:00", "18:00")
        assert not is_pickup_time_valid("2025-03-05 19:00:00", "09:00", "18:00")

    def test_unparsable_pickup_is_invalid(self):
        assert not is_pickup_time_valid("not a date", time(23, 0), time(2, 0))
        assert not is_pickup_before_cutoff("", time(23, 0))

    def test_before_cutoff_is_strict(self):
        cutoff = time(23, 0)
        assert is_pickup_before_cutoff("2025-03-05 22:59:59", cutoff)
        assert not is_pickup_before_cutoff("2025-03-05 23:00:01", cutoff)


class TestValueThreshold:
    def test_low_value_fails(self):
        # 1000 INR / 83 ≈ 12.05 USD
        assert not is_value_above_threshold(Decimal("1000"), Decimal("83.0"), Decimal("20.00"))

    def test_value_at_threshold_passes(self):
        assert is_value_above_threshold(Decimal("1660"), Decimal("83.0"), Decimal("20.00"))


class TestCarrierTable:
    def test_aliases_resolve_to_same_route(self):
        assert resolve_carrier("Ship+", "USA") == resolve_carrier("SHIP+", "US")
        assert resolve_carrier("shipd", "UK").business_days == 8

    def test_unknown_combination(self):
        assert resolve_carrier("SHIP+", "FR") is None
        assert resolve_carrier("EXPRESS", "US") is None
        assert resolve_carrier(None, "US") is None


class TestCipWindowValidator:
    def test_valid_shipment(self):
        verdict = CipWindowValidator().validate(make_shipment(), make_customer(), make_settings())

        assert verdict.valid
        assert verdict.reason is None
        assert verdict.shipment.awb == "AWB1"

    def test_destination_checked_before_supplier(self):
        verdict = CipWindowValidator().validate(
            make_shipment(destination_country="FR"),
            make_customer(company_name="Unknown Traders"),
            make_settings(),
        )

        assert not verdict.valid
        assert verdict.reason == RejectionReason.DESTINATION_NOT_ALLOWED

    def test_pickup_outside_window(self):
        verdict = CipWindowValidator().validate(
            make_shipment(pickup_at="2025-03-05 14:00:00"), make_customer(), make_settings(),
        )
        assert verdict.reason == RejectionReason.PICKUP_TIME_OUT_OF_WINDOW

    def test_missing_cip_time_rejects(self):
        verdict = CipWindowValidator().validate(make_shipment(), make_customer(), make_settings(cip_time=None))
        assert verdict.reason == RejectionReason.PICKUP_TIME_OUT_OF_WINDOW

    def test_supplier_not_allowed(self):
        verdict = CipWindowValidator().validate(
            make_shipment(), make_customer(company_name="Globex"), make_settings(),
        )
        assert verdict.reason == RejectionReason.SUPPLIER_NOT_ALLOWED

    def test_missing_customer_rejects_on_supplier(self):
        verdict = CipWindowValidator().validate(make_shipment(), None, make_settings())
        assert verdict.reason == RejectionReason.SUPPLIER_NOT_ALLOWED


class TestCutoffValueValidator:
    def _settings(self):
        return make_settings(cip_time=None)

    def test_valid_shipment(self):
        verdict = CutoffValueValidator().validate(
            make_shipment(pickup_at="2025-03-05 22:59:59"), make_customer(), self._settings(),
        )
        assert verdict.valid

    def test_pickup_after_cutoff(self):
        verdict = CutoffValueValidator().validate(
            make_shipment(pickup_at="2025-03-05 23:00:01"), make_customer(), self._settings(),
        )
        assert verdict.reason == RejectionReason.PICKUP_TIME_OUT_OF_WINDOW

    def test_service_checked_before_pickup(self):
        verdict = CutoffValueValidator().validate(
            make_shipment(service_type="EXPRESS", pickup_at="2025-03-05 23:30:00"),
            make_customer(),
            self._settings(),
        )
        assert verdict.reason == RejectionReason.SERVICE_UNSUPPORTED

    def test_value_below_threshold(self):
        verdict = CutoffValueValidator().validate(
            make_shipment(pickup_at="2025-03-05 10:00:00", declared_value=Decimal("1000")),
            make_customer(),
            self._settings(),
        )
        assert verdict.reason == RejectionReason.VALUE_BELOW_THRESHOLD
        assert "12.05" in verdict.message


def test_get_validator_by_variant():
    assert isinstance(get_validator(PipelineVariant.CIP_WINDOW), CipWindowValidator)
    assert isinstance(get_validator("CUTOFF_VALUE"), CutoffValueValidator)
