from datetime import date

import pytest

from budget_breakdown.periods import (
    days_remaining,
    format_statement_period,
    parse_statement_period,
    parse_transaction_date,
    statement_period_range,
)


def test_statement_period_starts_on_the_thirteenth():
    assert statement_period_range(date(2025, 10, 20)) == (date(2025, 10, 13), date(2025, 11, 12))
    assert statement_period_range(date(2025, 10, 13)) == (date(2025, 10, 13), date(2025, 11, 12))


def test_statement_period_before_start_day_uses_previous_month():
    assert statement_period_range(date(2025, 10, 5)) == (date(2025, 9, 13), date(2025, 10, 12))
    assert statement_period_range(date(2025, 1, 2)) == (date(2024, 12, 13), date(2025, 1, 12))


def test_statement_period_rejects_unsupported_start_day():
    with pytest.raises(ValueError):
        statement_period_range(date(2025, 10, 5), start_day=31)


def test_statement_period_labels_round_trip():
    start, end = date(2025, 10, 13), date(2025, 11, 12)
    label = format_statement_period(start, end)
    assert label == "2025-10-13_to_2025-11-12"
    assert parse_statement_period(label) == (start, end)


@pytest.mark.parametrize("label", [None, "", "2025-10-13", "2025-13-01_to_2025-14-01", "2025-11-12_to_2025-10-13"])
def test_parse_statement_period_rejects_malformed_labels(label):
    assert parse_statement_period(label) is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("September 12, 2025", date(2025, 9, 12)),
        ("Sep 12, 2025", date(2025, 9, 12)),
        ("2025-09-12", date(2025, 9, 12)),
        ("09/12/2025", date(2025, 9, 12)),
        ("next week", None),
        ("", None),
    ],
)
def test_parse_transaction_date(text, expected):
    assert parse_transaction_date(text) == expected


def test_days_remaining_counts_today_and_floors_at_zero():
    end = date(2025, 11, 12)
    assert days_remaining(end, date(2025, 11, 3)) == 10
    assert days_remaining(end, end) == 1
    assert days_remaining(end, date(2025, 11, 20)) == 0
