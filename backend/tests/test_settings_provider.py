from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from app.core.constants import PipelineVariant
from app.pipeline.errors import SettingsInvalidError, SettingsNotFoundError
from app.repositories.settings import SqlSettingsProvider, create_settings, split_list


def _row(**overrides):
    fields = {
        "supplier_names": "Acme Exports, Globex ,,",
        "destination_countries": "us,GB",
        "cutoff_time": time(23, 0),
        "cip_time": time(2, 0),
        "min_value_usd": Decimal("20.00"),
        "usd_to_inr_rate": Decimal("83.0"),
        "max_shipments": 5,
        "admin_emails": "ops@example.com, finance@example.com",
        "email_enabled": True,
    }
    fields.update(overrides)
    return fields


async def _seed(session_factory, *rows):
    async with session_factory() as session:
        async with session.begin():
            for fields in rows:
                await create_settings(session, **fields)


def test_split_list_drops_empty_entries():
    assert split_list(" a, b ,,c ") == ["a", "b", "c"]
    assert split_list(None) == []


@pytest.mark.asyncio
async def test_load_builds_snapshot(session_factory):
    await _seed(session_factory, _row())

    snapshot = await SqlSettingsProvider(session_factory).load()

    assert snapshot.suppliers == ("Acme Exports", "Globex")
    assert snapshot.countries == frozenset({"US", "GB"})
    assert snapshot.cutoff_time == time(23, 0)
    assert snapshot.cip_time == time(2, 0)
    assert snapshot.max_shipments == 5
    assert snapshot.email.enabled
    assert snapshot.email.recipients == ("ops@example.com", "finance@example.com")


@pytest.mark.asyncio
async def test_latest_row_wins(session_factory):
    earlier = datetime(2025, 3, 1, tzinfo=timezone.utc)
    await _seed(
        session_factory,
        _row(max_shipments=1, created_at=earlier),
        _row(max_shipments=7, created_at=earlier + timedelta(days=1)),
    )

    snapshot = await SqlSettingsProvider(session_factory).load()

    assert snapshot.max_shipments == 7


@pytest.mark.asyncio
async def test_missing_row_raises_not_found(session_factory):
    with pytest.raises(SettingsNotFoundError):
        await SqlSettingsProvider(session_factory).load()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"usd_to_inr_rate": Decimal("0")},
        {"max_shipments": -1},
        {"admin_emails": " , "},
    ],
)
async def test_invalid_row_raises(session_factory, overrides):
    await _seed(session_factory, _row(**overrides))

    with pytest.raises(SettingsInvalidError):
        await SqlSettingsProvider(session_factory).load()


@pytest.mark.asyncio
async def test_cip_time_required_only_for_cip_window(session_factory):
    await _seed(session_factory, _row(cip_time=None))

    with pytest.raises(SettingsInvalidError):
        await SqlSettingsProvider(session_factory, PipelineVariant.CIP_WINDOW).load()

    snapshot = await SqlSettingsProvider(session_factory, PipelineVariant.CUTOFF_VALUE).load()
    assert snapshot.cip_time is None


@pytest.mark.asyncio
async def test_load_email_settings_ignores_other_problems(session_factory):
    await _seed(session_factory, _row(usd_to_inr_rate=Decimal("0")))

    email = await SqlSettingsProvider(session_factory).load_email_settings()

    assert email.enabled
    assert email.recipients == ("ops@example.com", "finance@example.com")
