"""Execution-date helpers: the logistics API speaks DD-MM-YYYY."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from app.core.config import settings

EXECUTION_DATE_FORMAT = "%d-%m-%Y"


def today_in(tz_name: str | None = None) -> date:
    """Calendar date right now in the reconciliation timezone."""
    return datetime.now(ZoneInfo(tz_name or settings.RECONCILIATION_TIMEZONE)).date()


def format_execution_date(day: date) -> str:
    return day.strftime(EXECUTION_DATE_FORMAT)


def yesterday(today: date) -> str:
    return format_execution_date(today - timedelta(days=1))


def parse_execution_date(value: str) -> date:
    """
    Accept ``DD-MM-YYYY`` or ``YYYY-MM-DD``.

    Raises:
        ValueError: neither format matches.
    """
    text = value.strip()
    for fmt in (EXECUTION_DATE_FORMAT, "%Y-%m-%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date '{value}', expected DD-MM-YYYY or YYYY-MM-DD")


def normalize_execution_date(value: str | date | None, today: date) -> str:
    """Requested date in DD-MM-YYYY; yesterday when nothing was requested."""
    if value is None or value == "":
        return yesterday(today)
    if isinstance(value, date):
        return format_execution_date(value)
    return format_execution_date(parse_execution_date(value))
