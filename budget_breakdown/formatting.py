"""Utility helpers for turning breakdowns and projections into text tables."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from .models import CRITICALITIES, PEOPLE, ProjectedExpense, Transaction
from .projection import Projection
from .summary import Breakdown, PaymentSummaryRow, WeekRow


def _column_widths(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> Sequence[int]:
    widths = [len(h) for h in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))
    return widths


def _format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = _column_widths(headers, rows)

    def format_row(row: Sequence[str]) -> str:
        return " | ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(row))

    header_line = format_row(headers)
    separator = "-+-".join("-" * w for w in widths)
    body = "\n".join(format_row(row) for row in rows)
    return "\n".join([header_line, separator, body]) if body else "\n".join(
        [header_line, separator]
    )


def format_category_totals(totals: Mapping[str, float]) -> str:
    rows = [[category, f"{amount:,.2f}"] for category, amount in sorted(totals.items())]
    return _format_table(["Category", "Amount"], rows)


def format_breakdown(breakdown: Breakdown, people: Iterable[str] = PEOPLE) -> str:
    lines: list[str] = []
    for person in people:
        lines.append(f"{person}: {breakdown.total(person):,.2f}")
        for criticality in CRITICALITIES:
            categories = breakdown.categories(person, criticality)
            lines.append(f"  {criticality} ({breakdown.total(person, criticality):,.2f})")
            lines.extend("    " + line for line in format_category_totals(categories).splitlines())
        lines.append("")
    if breakdown.ignored:
        lines.append(f"Excluded {len(breakdown.ignored)} transaction(s) with an unknown account or criticality:")
        lines.extend(f"  - {tx.name} ({tx.account or 'no account'})" for tx in breakdown.ignored)
    return "\n".join(lines).rstrip() + "\n"


def format_transactions(transactions: Iterable[Transaction]) -> str:
    headers = ["Name", "Amount", "Category", "Criticality", "Date", "Account"]
    rows = [
        [
            tx.name,
            f"{tx.amount:,.2f}",
            tx.category,
            tx.criticality,
            tx.transaction_date,
            tx.account,
        ]
        for tx in transactions
    ]
    return _format_table(headers, rows)


def format_projected_expenses(projected: Sequence[ProjectedExpense]) -> str:
    headers = ["#", "Person", "Criticality", "Subcategory", "Amount", "Joint"]
    rows = [
        [
            str(idx),
            pe.person,
            pe.criticality,
            pe.subcategory,
            f"{pe.amount:,.2f}",
            "yes" if pe.is_joint else "",
        ]
        for idx, pe in enumerate(projected)
    ]
    return _format_table(headers, rows)


def format_projection(projection: Projection) -> str:
    if not projection.needed:
        return (
            f"{projection.person}: no projected expense needed for {projection.category} "
            f"({projection.criticality}); actuals and projections meet or exceed the goal."
        )
    return (
        f"{projection.person}'s weekly budget for {projection.category} ({projection.criticality}): "
        f"${projection.per_week:,.2f} for {projection.weeks} weeks "
        f"(${projection.projected_amount:,.2f} projected, ${projection.actual_spent:,.2f} spent)"
    )


def format_payment_summary(rows: Iterable[PaymentSummaryRow]) -> str:
    headers = ["Card", "Anna Payment", "Josh Payment", "Total"]
    data_rows = [
        [
            row.payment_method,
            f"{row.anna:,.2f}",
            f"{row.josh:,.2f}",
            f"{row.total:,.2f}",
        ]
        for row in rows
    ]
    return _format_table(headers, data_rows)


def format_weekly_breakdown(weeks: Sequence[WeekRow], show_transactions: bool = False) -> str:
    rows = [[week.label, f"{week.total:,.2f}"] for week in weeks]
    text = _format_table(["Week", "Amount"], rows)
    if show_transactions:
        for week in weeks:
            if week.transactions:
                text += f"\n\n{week.label}\n" + format_transactions(week.transactions)
    return text
