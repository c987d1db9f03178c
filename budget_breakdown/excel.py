from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from .logging_config import get_logger
from .models import CRITICALITIES, PEOPLE, ProjectedExpense
from .summary import Breakdown, PaymentSummaryRow

logger = get_logger(__name__)

BREAKDOWN_HEADERS = ("Criticality", "Category", "Amount")
PAYMENT_HEADERS = ("Card", "Anna Payment", "Josh Payment")
PROJECTED_HEADERS = ("Person", "Criticality", "Subcategory", "Amount", "Joint")
AMOUNT_FORMAT = "#,##0.00"


def _write_header(ws, headers: Sequence[str]) -> None:
    from openpyxl.styles import Font

    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = Font(bold=True)


def _fill_person_sheet(ws, breakdown: Breakdown, person: str) -> None:
    _write_header(ws, BREAKDOWN_HEADERS)
    for criticality in CRITICALITIES:
        for category, amount in breakdown.categories(person, criticality).items():
            ws.append([criticality, category, round(amount, 2)])
        ws.append([f"{criticality} total", None, round(breakdown.total(person, criticality), 2)])
    ws.append(["Total", None, round(breakdown.total(person), 2)])
    for row in ws.iter_rows(min_row=2, min_col=3, max_col=3):
        for cell in row:
            cell.number_format = AMOUNT_FORMAT
    ws.column_dimensions["A"].width = 20
    ws.column_dimensions["B"].width = 28
    ws.column_dimensions["C"].width = 14


def export_breakdown_workbook(
    output_path: Path,
    breakdown: Breakdown,
    payment_rows: Iterable[PaymentSummaryRow] | None = None,
    projected: Sequence[ProjectedExpense] | None = None,
) -> Path:
    """
    Write one sheet per person with their category totals, plus optional
    ``Payments`` and ``Projected`` sheets, and save to ``output_path``.
    """

    try:
        from openpyxl import Workbook
    except Exception as exc:  # pragma: no cover - dependency guidance
        raise SystemExit(
            "openpyxl is required for Excel output. Install with: pip install openpyxl"
        ) from exc

    wb = Workbook()
    first = wb.active
    first.title = PEOPLE[0]
    _fill_person_sheet(first, breakdown, PEOPLE[0])
    for person in PEOPLE[1:]:
        _fill_person_sheet(wb.create_sheet(title=person), breakdown, person)

    if payment_rows is not None:
        ws = wb.create_sheet(title="Payments")
        _write_header(ws, PAYMENT_HEADERS)
        for row in payment_rows:
            ws.append([row.payment_method, row.anna, row.josh])

    if projected:
        ws = wb.create_sheet(title="Projected")
        _write_header(ws, PROJECTED_HEADERS)
        for pe in projected:
            ws.append([pe.person, pe.criticality, pe.subcategory, round(pe.amount, 2), pe.is_joint])

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(output_path))
    logger.info("Wrote breakdown workbook to %s", output_path)
    return output_path
