from datetime import date

import pytest

from app.pipeline.dates import normalize_execution_date, parse_execution_date, yesterday


def test_yesterday_crosses_month():
    assert yesterday(date(2025, 3, 1)) == "28-02-2025"


@pytest.mark.parametrize("value", ["05-03-2025", "2025-03-05", " 05-03-2025 "])
def test_parse_accepts_both_formats(value):
    assert parse_execution_date(value) == date(2025, 3, 5)


@pytest.mark.parametrize("value", ["2025/03/05", "31-02-2025", "yesterday"])
def test_parse_rejects_other_forms(value):
    with pytest.raises(ValueError):
        parse_execution_date(value)


def test_normalize_defaults_to_yesterday():
    today = date(2025, 3, 6)

    assert normalize_execution_date(None, today) == "05-03-2025"
    assert normalize_execution_date("", today) == "05-03-2025"
    assert normalize_execution_date(date(2025, 1, 9), today) == "09-01-2025"
    assert normalize_execution_date("2025-01-09", today) == "09-01-2025"
