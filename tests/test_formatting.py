from datetime import date

from budget_breakdown.formatting import (
    format_breakdown,
    format_payment_summary,
    format_projected_expenses,
    format_projection,
    format_weekly_breakdown,
)
from budget_breakdown.models import ProjectedExpense, Transaction
from budget_breakdown.projection import Projection
from budget_breakdown.summary import PaymentSummaryRow, build_breakdown, build_weekly_breakdown


def make_projection(**kwargs):
    base = dict(
        person="Josh",
        criticality="Essential",
        category="Groceries",
        goal=800.0,
        actual_spent=300.0,
        already_projected=0.0,
        weeks=2,
        projected_amount=500.0,
        per_week=250.0,
    )
    base.update(kwargs)
    return Projection(**base)


def test_breakdown_lists_every_bucket_and_exclusions():
    breakdown = build_breakdown(
        [
            Transaction("Market", 120, "Groceries", "Essential", account="Joint"),
            Transaction("Gift", 50, "Gifts", "Essential", account="Other"),
        ]
    )
    text = format_breakdown(breakdown)
    assert "Josh: 60.00" in text
    assert "  NonEssential (0.00)" in text
    assert "Excluded 1 transaction(s)" in text
    assert "  - Gift (Other)" in text


def test_projection_messages():
    assert format_projection(make_projection()) == (
        "Josh's weekly budget for Groceries (Essential): $250.00 for 2 weeks "
        "($500.00 projected, $300.00 spent)"
    )
    met = format_projection(make_projection(projected_amount=0.0, per_week=0.0))
    assert "no projected expense needed" in met


def test_projected_expense_table_marks_joint_rows():
    rows = format_projected_expenses(ProjectedExpense.create("Joint", "Essential", "Rent", 10)).splitlines()
    assert rows[0].split(" | ")[0].strip() == "#"
    assert rows[2].startswith("0 ")
    assert rows[2].rstrip().endswith("yes")


def test_payment_summary_table_has_totals():
    text = format_payment_summary([PaymentSummaryRow("Visa", 60.0, 1360.0)])
    header, _, row = text.splitlines()
    assert header.split(" | ")[-1].strip() == "Total"
    assert row.split(" | ")[-1].strip() == "1,420.00"


def test_weekly_table_lists_weeks_and_details():
    weeks = build_weekly_breakdown(
        [Transaction("Milk", 4, "Groceries", "Essential", "October 14, 2025", "Josh")],
        "Groceries",
        date(2025, 10, 13),
        date(2025, 10, 26),
    )
    text = format_weekly_breakdown(weeks, show_transactions=True)
    lines = text.splitlines()
    assert lines[2].startswith("Week 1 (Oct 13-Oct 19) | 4.00")
    assert lines[3].startswith("Week 2 (Oct 20-Oct 26) | 0.00")
    assert "Milk" in text
