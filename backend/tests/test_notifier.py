import smtplib

import pytest

from app.notifications.notifier import FailureAlert, Notifier, SummaryStats
from app.pipeline.models import EmailSettings

ENABLED = EmailSettings(enabled=True, recipients=("ops@example.com", "cfo@example.com"))


def _notifier(mocker):
    notifier = Notifier(host="smtp.test", port=587, username="bot", password="pw", encryption="tls",
                        from_address="bot@example.com")
    deliver = mocker.patch.object(notifier, "_deliver", new=mocker.AsyncMock())
    return notifier, deliver


def test_success_rate():
    assert SummaryStats("05-03-2025", processed=4, succeeded=3).success_rate == 75.0
    assert SummaryStats("05-03-2025").success_rate == 0.0


@pytest.mark.asyncio
async def test_summary_sent_to_all_recipients(mocker):
    notifier, deliver = _notifier(mocker)
    stats = SummaryStats("05-03-2025", total_listed=3, valid_found=2, processed=2, succeeded=2)

    assert await notifier.send_summary(stats, ENABLED)

    message = deliver.await_args.args[0]
    assert message["Subject"] == "Daily Shipment Insurance Summary - 05-03-2025"
    assert message["To"] == "ops@example.com, cfo@example.com"
    assert message["From"] == "bot@example.com"
    assert "Success rate:             100.0%" in message.get_body(("plain",)).get_content()


@pytest.mark.asyncio
async def test_disabled_email_sends_nothing(mocker):
    notifier, deliver = _notifier(mocker)

    sent = await notifier.send_summary(
        SummaryStats("05-03-2025"), EmailSettings(enabled=False, recipients=("ops@example.com",))
    )

    assert not sent
    deliver.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_recipients_sends_nothing(mocker):
    notifier, deliver = _notifier(mocker)

    assert not await notifier.send_summary(SummaryStats("05-03-2025"), EmailSettings(enabled=True))
    deliver.assert_not_awaited()


@pytest.mark.asyncio
async def test_failure_alert_lists_shipment_errors(mocker):
    notifier, deliver = _notifier(mocker)
    alert = FailureAlert(
        job_name="shipment_daily_reconciliation",
        error_type="api_error",
        error_message="Shipment listing returned 503",
        execution_date="05-03-2025",
        specific_errors=[(f"AWB{i}", "destination_not_allowed") for i in range(12)],
    )

    assert await notifier.send_failure_alert(alert, ENABLED)

    message = deliver.await_args.args[0]
    assert message["Subject"] == (
        "Reconciliation Job Failure Alert - shipment_daily_reconciliation (05-03-2025)"
    )
    text = message.get_body(("plain",)).get_content()
    html = message.get_body(("html",)).get_content()
    assert "- AWB AWB4: destination_not_allowed" in text
    assert "AWB5" not in text
    assert "AWB9" in html
    assert "AWB10" not in html


@pytest.mark.asyncio
async def test_smtp_failure_is_reported_not_raised(mocker):
    notifier, deliver = _notifier(mocker)
    deliver.side_effect = smtplib.SMTPException("relay denied")

    assert not await notifier.send_summary(SummaryStats("05-03-2025"), ENABLED)
