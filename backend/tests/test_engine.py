"""
End-to-end runs of the reconciliation engine over in-memory fakes.

today is fixed at 2025-03-06 so the default execution date is 05-03-2025.
"""

from datetime import time
from decimal import Decimal

import pytest

from app.core.constants import FlowType, PipelineVariant, RejectionReason, RunState, RunStatus
from app.pipeline.engine import ReconciliationEngine
from app.pipeline.errors import (
    RunInProgressError,
    SettingsNotFoundError,
    ShipmentSourceError,
    UnderwritingNetworkError,
)
from app.pipeline.locking import LocalRunLock
from app.pipeline.models import EmailSettings, UnderwritingResult

from fakes import (
    FakeNotifier,
    FakeResultStore,
    FakeSettingsProvider,
    FakeShipmentSource,
    FakeUnderwritingClient,
    make_customer,
    make_services,
    make_settings,
    make_shipment,
)


class RenewCountingLock(LocalRunLock):
    def __init__(self) -> None:
        super().__init__("test_job")
        self.renewals = 0

    async def renew(self) -> None:
        self.renewals += 1


def _source(awbs, **shipment_overrides) -> FakeShipmentSource:
    """Listing of ``awbs``; each AWB may override its shipment fields."""
    shipments = {
        awb: make_shipment(awb, **shipment_overrides.get(awb, {}))
        for awb in awbs
    }
    customers = {shipment.customer_id: make_customer() for shipment in shipments.values()}
    return FakeShipmentSource(awbs=list(awbs), shipments=shipments, customers=customers)


class TestTwoPhaseRun:
    @pytest.mark.asyncio
    async def test_validates_all_then_caps_valid_shipments(self):
        source = _source(["AWB1", "AWB2", "AWB3", "AWB4"], AWB2={"destination_country": "FR"})
        store = FakeResultStore()
        notifier = FakeNotifier()
        services = make_services(
            settings_provider=FakeSettingsProvider(make_settings(max_shipments=2)),
            shipment_source=source,
            result_store=store,
            notifier=notifier,
        )

        result = await ReconciliationEngine(services).run()

        assert result.status == RunStatus.COMPLETED
        assert result.state == RunState.DONE
        assert result.execution_date == "05-03-2025"
        assert ("list", "05-03-2025", "05-03-2025") in source.calls
        assert result.total_listed == 4
        assert result.valid_found == 3
        assert result.processed == 2
        assert result.skipped == 1
        assert [s["shipment_id"] for s in result.successes] == ["AWB1", "AWB3"]
        assert list(store.records) == ["AWB1", "AWB3"]
        assert result.errors == [("AWB2", "destination_not_allowed")]
        assert result.success_rate == 100.0
        assert len(notifier.summaries) == 1
        assert notifier.summaries[0][0].skipped == 1

    @pytest.mark.asyncio
    async def test_state_history_follows_phases(self):
        services = make_services(shipment_source=_source(["AWB1"]))
        engine = ReconciliationEngine(services)

        captured = {}
        original = engine.run_steps

        async def spy(ctx, steps):
            captured["ctx"] = ctx
            await original(ctx, steps)

        engine.run_steps = spy
        await engine.run()

        assert captured["ctx"].state_history == [
            RunState.IDLE,
            RunState.SETTINGS_LOADED,
            RunState.LISTING,
            RunState.VALIDATING,
            RunState.CAPPING,
            RunState.PROCESSING,
            RunState.SUMMARIZING,
            RunState.DONE,
        ]

    @pytest.mark.asyncio
    async def test_repeated_awb_handled_once(self):
        source = _source(["AWB1", "AWB2"])
        source.awbs = ["AWB1", "AWB2", "AWB1"]
        services = make_services(shipment_source=source)

        result = await ReconciliationEngine(services).run()

        assert result.total_listed == 2
        assert result.processed == 2

    @pytest.mark.asyncio
    async def test_zero_cap_processes_nothing(self):
        notifier = FakeNotifier()
        services = make_services(
            settings_provider=FakeSettingsProvider(make_settings(max_shipments=0)),
            shipment_source=_source(["AWB1", "AWB2"]),
            notifier=notifier,
        )

        result = await ReconciliationEngine(services).run()

        assert result.status == RunStatus.COMPLETED
        assert result.valid_found == 2
        assert result.processed == 0
        assert result.skipped == 2
        assert result.success_rate == 0.0
        assert notifier.summaries == []

    @pytest.mark.asyncio
    async def test_empty_listing_completes_quietly(self):
        notifier = FakeNotifier()
        services = make_services(shipment_source=_source([]), notifier=notifier)

        result = await ReconciliationEngine(services).run()

        assert result.status == RunStatus.COMPLETED
        assert result.total_listed == 0
        assert notifier.summaries == []
        assert notifier.alerts == []

    @pytest.mark.asyncio
    async def test_partner_failures_stay_per_shipment(self):
        client = FakeUnderwritingClient({
            "AWB2": UnderwritingResult(shipment_id="AWB2", status="failed", currency="INR"),
            "AWB3": UnderwritingNetworkError("Underwriting API unreachable: timeout"),
        })
        notifier = FakeNotifier()
        store = FakeResultStore()
        services = make_services(
            shipment_source=_source(["AWB1", "AWB2", "AWB3"]),
            underwriting_client=client,
            notifier=notifier,
            result_store=store,
        )

        result = await ReconciliationEngine(services).run()

        assert result.status == RunStatus.COMPLETED
        assert result.processed == 3
        assert result.succeeded == 1
        assert [awb for awb, _ in result.errors] == ["AWB2", "AWB3"]
        assert "timeout" in result.errors[1][1]
        assert result.success_rate == 33.33
        # below the 80% threshold
        assert notifier.summaries == []
        assert notifier.alerts == []
        assert store.errors == []

    @pytest.mark.asyncio
    async def test_save_failure_is_logged_as_database_error(self):
        store = FakeResultStore(fail_upsert_for={"AWB2"})
        services = make_services(shipment_source=_source(["AWB1", "AWB2"]), result_store=store)

        result = await ReconciliationEngine(services).run()

        assert result.succeeded == 1
        assert result.errors[0][0] == "AWB2"
        assert len(store.errors) == 1
        assert store.errors[0]["category"] == "database_error"
        assert store.errors[0]["shipment_id"] == "AWB2"
        assert store.errors[0]["execution_date"] == "05-03-2025"

    @pytest.mark.asyncio
    async def test_failed_lookup_rejects_only_that_shipment(self):
        source = _source(["AWB1", "AWB2"])
        del source.shipments["AWB2"]
        services = make_services(shipment_source=source)

        result = await ReconciliationEngine(services).run()

        assert result.status == RunStatus.COMPLETED
        assert result.succeeded == 1
        assert result.errors == [("AWB2", RejectionReason.LOOKUP_FAILED.value)]

    @pytest.mark.asyncio
    async def test_partner_calls_are_paced(self):
        services = make_services(shipment_source=_source(["AWB1"]))

        await ReconciliationEngine(services).run()

        # listing, detail, customer, submission
        assert services.sleep.calls == [0.5, 0.5, 0.5, 1.0]

    @pytest.mark.asyncio
    async def test_failed_lookup_is_still_paced(self):
        source = _source(["AWB1", "AWB2"])
        del source.shipments["AWB1"]
        services = make_services(shipment_source=source)

        await ReconciliationEngine(services).run()

        # listing, AWB1 detail (failed), AWB2 detail + customer, AWB2 submission
        assert services.sleep.calls == [0.5, 0.5, 0.5, 0.5, 1.0]
        assert [call[0] for call in source.calls] == ["list", "detail", "detail", "customer"]

    @pytest.mark.asyncio
    async def test_lock_is_renewed_while_running(self):
        lock = RenewCountingLock()
        services = make_services(shipment_source=_source(["AWB1"]), lock=lock)

        await ReconciliationEngine(services).run()

        # once per step, once per pause
        assert lock.renewals == len(services.sleep.calls) + 6

    @pytest.mark.asyncio
    async def test_empty_listing_is_not_paced(self):
        services = make_services(shipment_source=_source([]))

        await ReconciliationEngine(services).run()

        assert services.sleep.calls == []

    @pytest.mark.asyncio
    async def test_summary_respects_disabled_email(self):
        settings = make_settings(email=EmailSettings(enabled=False))
        services = make_services(
            settings_provider=FakeSettingsProvider(settings),
            shipment_source=_source(["AWB1"]),
        )
        engine = ReconciliationEngine(services)

        result = await engine.run()

        assert result.status == RunStatus.COMPLETED
        assert services.notifier.summaries[0][1].enabled is False


class TestReferenceScenarios:
    @pytest.mark.asyncio
    async def test_cip_window_run_with_fuzzy_suppliers(self):
        shipments = {
            "AWB1": make_shipment("AWB1", destination_country="US", pickup_at="2025-03-05 20:00:00"),
            "AWB2": make_shipment("AWB2", destination_country="FR", pickup_at="2025-03-05 20:30:00"),
            "AWB3": make_shipment("AWB3", destination_country="GB", pickup_at="2025-03-05 21:00:00"),
        }
        source = FakeShipmentSource(
            awbs=["AWB1", "AWB2", "AWB3"],
            shipments=shipments,
            customers={
                "C-AWB1": make_customer("ACME Corp"),
                "C-AWB2": make_customer("ACME Corp"),
                "C-AWB3": make_customer("Acme"),
            },
        )
        settings = make_settings(
            countries=frozenset({"US", "GB"}),
            cutoff_time=time(19, 0),
            cip_time=time(23, 30),
            suppliers=("ACME",),
            max_shipments=2,
        )
        client = FakeUnderwritingClient()
        services = make_services(
            settings_provider=FakeSettingsProvider(settings),
            shipment_source=source,
            underwriting_client=client,
            variant=PipelineVariant.CIP_WINDOW,
        )

        result = await ReconciliationEngine(services).run()

        assert result.valid_found == 2
        assert result.processed == 2
        assert result.skipped == 0
        assert [s["shipment_id"] for s in result.successes] == ["AWB1", "AWB3"]
        assert [p.shipment.awb for p in client.payloads] == ["AWB1", "AWB3"]
        assert result.errors == [("AWB2", "destination_not_allowed")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "pickup_at, accepted",
        [("2025-03-05 22:59:59", True), ("2025-03-05 23:00:01", False)],
    )
    async def test_cutoff_only_run(self, pickup_at, accepted):
        source = _source(["AWB1"], AWB1={"pickup_at": pickup_at})
        settings = make_settings(cutoff_time=time(23, 0), cip_time=None)
        services = make_services(
            settings_provider=FakeSettingsProvider(settings),
            shipment_source=source,
            variant=PipelineVariant.CUTOFF_VALUE,
        )

        result = await ReconciliationEngine(services).run()

        assert result.valid_found == (1 if accepted else 0)
        if not accepted:
            assert result.errors == [("AWB1", RejectionReason.PICKUP_TIME_OUT_OF_WINDOW.value)]

    @pytest.mark.asyncio
    async def test_low_value_is_rejected_in_usd(self):
        source = _source(["AWB1"], AWB1={"declared_value": Decimal("1000"), "pickup_at": "2025-03-05 10:00:00"})
        settings = make_settings(usd_to_inr_rate=Decimal("83.0"), min_value_usd=Decimal("20.00"))
        services = make_services(
            settings_provider=FakeSettingsProvider(settings),
            shipment_source=source,
            variant=PipelineVariant.CUTOFF_VALUE,
        )

        result = await ReconciliationEngine(services).run()

        assert result.valid_found == 0
        assert result.errors == [("AWB1", RejectionReason.VALUE_BELOW_THRESHOLD.value)]


class TestSystemicFailures:
    @pytest.mark.asyncio
    async def test_listing_failure_aborts_with_one_log_and_one_alert(self):
        source = FakeShipmentSource(listing_error=ShipmentSourceError("Shipment listing returned 503", status_code=503))
        store = FakeResultStore()
        notifier = FakeNotifier()
        services = make_services(shipment_source=source, result_store=store, notifier=notifier)

        with pytest.raises(ShipmentSourceError) as exc_info:
            await ReconciliationEngine(services).run()

        assert exc_info.value.step_name == "list_shipments"
        assert len(store.errors) == 1
        assert store.errors[0]["category"] == "api_error"
        assert store.errors[0]["execution_date"] == "05-03-2025"
        assert store.errors[0]["details"]["state"] == "LISTING"
        assert len(notifier.alerts) == 1
        alert, email = notifier.alerts[0]
        assert alert.error_type == "api_error"
        assert alert.execution_date == "05-03-2025"
        assert email.recipients == ("ops@example.com",)

    @pytest.mark.asyncio
    async def test_missing_settings_alerts_with_stored_recipients(self):
        provider = FakeSettingsProvider(error=SettingsNotFoundError("No reconciliation settings found"))
        provider.email = EmailSettings(enabled=True, recipients=("admin@example.com",))
        store = FakeResultStore()
        notifier = FakeNotifier()
        services = make_services(settings_provider=provider, result_store=store, notifier=notifier)

        with pytest.raises(SettingsNotFoundError):
            await ReconciliationEngine(services).run()

        assert [e["category"] for e in store.errors] == ["database_error"]
        assert notifier.alerts[0][1].recipients == ("admin@example.com",)

    @pytest.mark.asyncio
    async def test_unexpected_error_is_a_cron_failure(self):
        provider = FakeSettingsProvider(error=RuntimeError("event loop closed"))
        store = FakeResultStore()
        notifier = FakeNotifier()
        services = make_services(settings_provider=provider, result_store=store, notifier=notifier)

        with pytest.raises(RuntimeError):
            await ReconciliationEngine(services).run()

        assert store.errors[0]["category"] == "cron_failure"
        assert store.errors[0]["details"]["exception_type"] == "RuntimeError"
        assert notifier.alerts[0][0].error_type == "cron_failure"

    @pytest.mark.asyncio
    async def test_alert_failure_does_not_mask_original_error(self, mocker):
        notifier = FakeNotifier()
        mocker.patch.object(notifier, "send_failure_alert", side_effect=OSError("smtp down"))
        services = make_services(
            shipment_source=FakeShipmentSource(listing_error=ShipmentSourceError("listing down")),
            notifier=notifier,
        )

        with pytest.raises(ShipmentSourceError):
            await ReconciliationEngine(services).run()

    @pytest.mark.asyncio
    async def test_second_run_rejected_while_lock_held(self):
        lock = LocalRunLock("test_job")
        notifier = FakeNotifier()
        services = make_services(shipment_source=_source(["AWB1"]), lock=lock, notifier=notifier)
        engine = ReconciliationEngine(services)

        async with lock:
            with pytest.raises(RunInProgressError):
                await engine.run()

        assert notifier.alerts == []
        result = await engine.run()
        assert result.status == RunStatus.COMPLETED


class TestSinglePassRun:
    @pytest.mark.asyncio
    async def test_caps_raw_listing_before_validation(self):
        source = _source(["AWB1", "AWB2", "AWB3"], AWB1={"destination_country": "FR"})
        notifier = FakeNotifier()
        services = make_services(
            settings_provider=FakeSettingsProvider(make_settings(max_shipments=2)),
            shipment_source=source,
            notifier=notifier,
        )

        result = await ReconciliationEngine(services).run(flow_type=FlowType.SINGLE_PASS)

        assert result.status == RunStatus.COMPLETED
        assert result.flow_type == "SINGLE_PASS"
        assert result.processed == 1
        assert [s["shipment_id"] for s in result.successes] == ["AWB2"]
        assert ("detail", "AWB3") not in source.calls
        assert result.skipped == 1
        assert notifier.summaries == []


class TestExecutionDate:
    @pytest.mark.asyncio
    async def test_iso_date_is_normalised(self):
        source = _source([])
        services = make_services(shipment_source=source)

        result = await ReconciliationEngine(services).run(target_date="2025-03-01")

        assert result.execution_date == "01-03-2025"
        assert ("list", "01-03-2025", "01-03-2025") in source.calls

    @pytest.mark.asyncio
    async def test_invalid_date_rejected_before_running(self):
        source = _source([])
        services = make_services(shipment_source=source)

        with pytest.raises(ValueError):
            await ReconciliationEngine(services).run(target_date="March 1st")

        assert source.calls == []


def test_result_serialises_errors_as_objects():
    from datetime import datetime, timezone

    from app.pipeline.engine import ReconciliationResult

    now = datetime(2025, 3, 6, tzinfo=timezone.utc)
    result = ReconciliationResult(
        execution_id="x",
        execution_date="05-03-2025",
        status="COMPLETED",
        state="DONE",
        flow_type="TWO_PHASE",
        errors=[("AWB2", "destination_not_allowed")],
        started_at=now,
        completed_at=now,
    )

    assert result.to_dict()["errors"] == [{"shipment_id": "AWB2", "reason": "destination_not_allowed"}]
