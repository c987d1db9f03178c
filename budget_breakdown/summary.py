"""Per-person breakdowns of actual and projected spending."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .logging_config import get_logger
from .models import (
    CRITICALITIES,
    PEOPLE,
    UNCATEGORIZED,
    ProjectedExpense,
    Transaction,
    canonical_criticality,
    canonical_person,
    is_joint_account,
    same_text,
)
from .periods import parse_transaction_date

logger = get_logger(__name__)

BreakdownKey = Tuple[str, str, str]


@dataclass(frozen=True)
class BreakdownRow:
    person: str
    criticality: str
    category: str
    amount: float


def _canonical_bucket(person: str, criticality: str) -> Tuple[str, str]:
    return (
        canonical_person(person) or person,
        canonical_criticality(criticality) or criticality,
    )


@dataclass(frozen=True)
class Breakdown:
    """Amounts keyed by ``(person, criticality, category)``.

    Lookups for any person/criticality pair in the fixed sets return an empty
    mapping rather than failing, so views never need existence checks.
    Transactions that could not be attributed are kept in ``ignored``.
    """

    totals: Mapping[BreakdownKey, float] = field(hash=False)
    ignored: Tuple[Transaction, ...] = field(default=())

    def amount(self, person: str, criticality: str, category: str) -> float:
        person, criticality = _canonical_bucket(person, criticality)
        return self.totals.get((person, criticality, category), 0.0)

    def categories(self, person: str, criticality: str) -> Dict[str, float]:
        person, criticality = _canonical_bucket(person, criticality)
        return {
            category: value
            for (p, c, category), value in sorted(self.totals.items())
            if p == person and c == criticality
        }

    def by_person(self, person: str) -> Dict[str, Dict[str, float]]:
        return {criticality: self.categories(person, criticality) for criticality in CRITICALITIES}

    def as_nested(self) -> Dict[str, Dict[str, Dict[str, float]]]:
        """Return ``person -> criticality -> category -> amount`` with every bucket present."""

        return {person: self.by_person(person) for person in PEOPLE}

    def total(self, person: Optional[str] = None, criticality: Optional[str] = None) -> float:
        if person is not None:
            person = canonical_person(person) or person
        if criticality is not None:
            criticality = canonical_criticality(criticality) or criticality
        return sum(
            value
            for (p, c, _), value in self.totals.items()
            if (person is None or p == person) and (criticality is None or c == criticality)
        )

    def rows(self) -> List[BreakdownRow]:
        return [
            BreakdownRow(person, criticality, category, round(value, 2))
            for (person, criticality, category), value in sorted(self.totals.items())
        ]

    def __iter__(self) -> Iterator[BreakdownRow]:
        return iter(self.rows())


@dataclass(frozen=True)
class PaymentSummaryRow:
    payment_method: str
    anna: float
    josh: float

    @property
    def total(self) -> float:
        return self.anna + self.josh


def _targets(account: str | None) -> Tuple[Tuple[str, float], ...]:
    """Return ``(person, share)`` pairs for an account."""

    if is_joint_account(account):
        return tuple((person, 0.5) for person in PEOPLE)
    person = canonical_person(account)
    if person is None:
        return ()
    return ((person, 1.0),)


def build_breakdown(
    transactions: Iterable[Transaction],
    projected_expenses: Iterable[ProjectedExpense] | None = None,
    *,
    include_projected: bool = True,
) -> Breakdown:
    """Sum spending by person, criticality and category.

    Joint transactions count half towards each person. Transactions on other
    accounts, or with a criticality outside ``Essential``/``NonEssential``, are
    logged and listed in :attr:`Breakdown.ignored`. Projected expenses are
    added at their stored amount unless ``include_projected`` is false.
    """

    totals: Dict[BreakdownKey, float] = defaultdict(float)
    ignored: List[Transaction] = []

    for tx in transactions:
        targets = _targets(tx.account)
        criticality = canonical_criticality(tx.criticality)
        if not targets or criticality is None:
            logger.warning(
                "Excluding transaction %r from breakdown (account=%r, criticality=%r)",
                tx.name,
                tx.account,
                tx.criticality,
            )
            ignored.append(tx)
            continue
        category = (tx.category or "").strip() or UNCATEGORIZED
        for person, share in targets:
            totals[(person, criticality, category)] += tx.amount * share

    if include_projected and projected_expenses is not None:
        for expense in projected_expenses:
            criticality = canonical_criticality(expense.criticality)
            if criticality is None:
                logger.warning(
                    "Excluding projected expense %r with criticality %r",
                    expense.subcategory,
                    expense.criticality,
                )
                continue
            category = expense.subcategory or UNCATEGORIZED
            totals[(expense.person, criticality, category)] += expense.amount

    return Breakdown(totals=dict(totals), ignored=tuple(ignored))


def build_actuals_breakdown(transactions: Iterable[Transaction]) -> Breakdown:
    """Breakdown of actual transactions only, leaving projections out."""

    return build_breakdown(transactions, None, include_projected=False)


def build_payment_summary(transactions: Sequence[Transaction]) -> List[PaymentSummaryRow]:
    """Return what Anna and Josh each owe per payment method.

    Each person pays their own transactions plus half of the Joint ones.
    Transactions without a payment method, or on an account other than
    Josh, Anna or Joint, are left out.
    """

    buckets: Dict[str, Dict[str, float]] = defaultdict(lambda: {person: 0.0 for person in PEOPLE})
    labels: Dict[str, str] = {}
    for tx in transactions:
        method = (tx.payment_method or "").strip()
        if not method:
            continue
        targets = _targets(tx.account)
        if not targets:
            continue
        key = method.lower()
        labels.setdefault(key, method)
        for person, share in targets:
            buckets[key][person] += tx.amount * share

    rows = [
        PaymentSummaryRow(
            payment_method=labels[key],
            anna=round(values["Anna"], 2),
            josh=round(values["Josh"], 2),
        )
        for key, values in buckets.items()
    ]
    rows.sort(key=lambda row: row.payment_method.lower())
    return rows


@dataclass(frozen=True)
class WeekRow:
    week: int
    start: date
    end: date
    total: float
    transactions: Tuple[Transaction, ...] = ()

    @property
    def label(self) -> str:
        return f"Week {self.week} ({self.start:%b} {self.start.day}-{self.end:%b} {self.end.day})"


def week_ranges(start: date, end: date) -> List[Tuple[date, date]]:
    """Split ``start``..``end`` into 7-day weeks, clipping the last one to ``end``."""

    ranges: List[Tuple[date, date]] = []
    week_start = start
    while week_start <= end:
        week_end = min(week_start + timedelta(days=6), end)
        ranges.append((week_start, week_end))
        week_start = week_end + timedelta(days=1)
    return ranges


def build_weekly_breakdown(
    transactions: Iterable[Transaction],
    category: str | None,
    start: date,
    end: date,
) -> List[WeekRow]:
    """Bucket a category's spending into statement-relative weeks.

    Days 0-6 after ``start`` fall in week 1, days 7-13 in week 2 and so on.
    Every week of the period gets a row, even when nothing was spent. Rows
    with an unreadable date or a date outside the period are skipped.
    """

    ranges = week_ranges(start, end)
    buckets: Dict[int, List[Transaction]] = defaultdict(list)
    for tx in transactions:
        if category is not None and not same_text(tx.category, category):
            continue
        occurred = parse_transaction_date(tx.transaction_date)
        if occurred is None:
            logger.warning("Transaction %r has no readable date; skipping", tx.name)
            continue
        if not start <= occurred <= end:
            logger.debug("Transaction %r (%s) is outside %s..%s", tx.name, occurred, start, end)
            continue
        buckets[(occurred - start).days // 7 + 1].append(tx)

    return [
        WeekRow(
            week=index,
            start=week_start,
            end=week_end,
            total=round(sum(tx.amount for tx in buckets[index]), 2),
            transactions=tuple(buckets[index]),
        )
        for index, (week_start, week_end) in enumerate(ranges, start=1)
    ]
