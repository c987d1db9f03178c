"""Utilities for working with statement periods."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

PERIOD_SEPARATOR = "_to_"
TRANSACTION_DATE_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%Y-%m-%d", "%m/%d/%Y")


def _shift_month(day: date, months: int, day_of_month: int) -> date:
    month_index = day.year * 12 + day.month - 1 + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day_of_month, last_day))


def statement_period_range(today: date | None = None, start_day: int = 13) -> Tuple[date, date]:
    """Return the billing cycle containing ``today``.

    Cycles begin on ``start_day`` and end the day before ``start_day`` of the
    following month, e.g. 2025-10-13 to 2025-11-12.
    """

    if not 1 <= start_day <= 28:
        raise ValueError("start_day must be between 1 and 28")
    today = today or date.today()
    if today.day >= start_day:
        start = today.replace(day=start_day)
    else:
        start = _shift_month(today, -1, start_day)
    end = _shift_month(start, 1, start_day) - timedelta(days=1)
    return start, end


def format_statement_period(start: date, end: date) -> str:
    """Return labels such as ``"2025-10-13_to_2025-11-12"``."""

    return f"{start.isoformat()}{PERIOD_SEPARATOR}{end.isoformat()}"


def parse_statement_period(label: str | None) -> Optional[Tuple[date, date]]:
    """Parse a period label back into its dates, or ``None`` if it is malformed."""

    if not label or PERIOD_SEPARATOR not in label:
        return None
    start_text, end_text = label.strip().split(PERIOD_SEPARATOR, 1)
    try:
        start = date.fromisoformat(start_text)
        end = date.fromisoformat(end_text)
    except ValueError:
        return None
    if end < start:
        return None
    return start, end


def parse_transaction_date(text: str | None) -> Optional[date]:
    """Read the free-text dates found in the CSV (``"September 12, 2025"``)."""

    cleaned = (text or "").strip()
    if not cleaned:
        return None
    for fmt in TRANSACTION_DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def days_remaining(period_end: date, today: date | None = None) -> int:
    """Days left in a cycle, counting ``today`` and never below zero."""

    today = today or date.today()
    return max(0, (period_end - today).days + 1)
