"""Helpers for reading and writing the budget CSV files."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple

from .csv_codec import format_amount, join_fields, parse_amount, split_line
from .logging_config import get_logger
from .models import (
    ACTIVE_STATUS,
    ProjectedExpense,
    Transaction,
    same_text,
)
from .periods import parse_transaction_date

logger = get_logger(__name__)

BUDGET_HEADER = [
    "Name",
    "Amount",
    "Category",
    "Criticality",
    "Transaction Date",
    "Account",
    "status",
    "Created time",
    "Payment Method",
]
MIN_COLUMNS = 8

PROJECTED_HEADER = ["Person", "Criticality", "Subcategory", "Amount", "Joint"]


class BudgetFileError(OSError):
    """Raised when a budget file cannot be created, read or written."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


@dataclass
class LoadResult:
    transactions: List[Transaction] = field(default_factory=list)
    projected: List[ProjectedExpense] = field(default_factory=list)
    skipped_lines: List[int] = field(default_factory=list)


@dataclass
class ImportResult:
    imported: List[Transaction] = field(default_factory=list)
    duplicates: List[Transaction] = field(default_factory=list)
    skipped_lines: List[int] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.imported)


def _iter_rows(path: Path, legacy_split: bool) -> Iterator[Tuple[int, List[str]]]:
    """Yield ``(line_number, fields)`` for the data rows of ``path``."""

    try:
        with path.open(newline="", encoding="utf-8-sig") as csvfile:
            if legacy_split:
                numbered = ((idx, line.rstrip("\r\n")) for idx, line in enumerate(csvfile, start=1))
                rows = ((idx, line, split_line(line)) for idx, line in numbered)
            else:
                reader = csv.reader(csvfile)
                rows = ((reader.line_num, None, row) for row in reader)
            header_seen = False
            for line_num, raw, row in rows:
                if not header_seen:
                    header_seen = True
                    continue
                if raw is not None and raw.startswith(","):
                    continue
                if not row or not any(value.strip() for value in row):
                    continue
                if raw is None and row[0] == "":
                    continue
                yield line_num, row
    except OSError as exc:
        raise BudgetFileError(path, f"Failed to read budget CSV ({exc.strerror or exc})") from exc


def _transaction_from_row(row: Sequence[str]) -> Transaction:
    values = [value.strip() for value in row] + [""] * (len(BUDGET_HEADER) - len(row))
    return Transaction(
        name=values[0],
        amount=parse_amount(values[1]),
        category=values[2],
        criticality=values[3],
        transaction_date=values[4],
        account=values[5],
        status=values[6],
        created_time=values[7],
        payment_method=values[8],
    )


def _projected_from_transaction(tx: Transaction) -> Tuple[ProjectedExpense, ...]:
    return ProjectedExpense.create(tx.account, tx.criticality, tx.category, tx.amount)


def load_budget_csv(path: str | Path, legacy_split: bool = False) -> LoadResult:
    """Load actual transactions and ``active`` projections from the budget CSV.

    Rows with fewer than eight columns are skipped and their line numbers are
    reported in :attr:`LoadResult.skipped_lines`. ``legacy_split`` reads each
    line with :func:`split_line` instead of the standard CSV reader.
    """

    path = Path(path)
    result = LoadResult()
    for line_num, row in _iter_rows(path, legacy_split):
        if len(row) < MIN_COLUMNS:
            logger.warning(
                "Line %d: expected at least %d columns but found %d; skipping",
                line_num,
                MIN_COLUMNS,
                len(row),
            )
            result.skipped_lines.append(line_num)
            continue
        tx = _transaction_from_row(row)
        if same_text(tx.status, ACTIVE_STATUS):
            try:
                result.projected.extend(_projected_from_transaction(tx))
            except ValueError as exc:
                logger.warning("Line %d: cannot use projected row (%s); skipping", line_num, exc)
                result.skipped_lines.append(line_num)
            continue
        result.transactions.append(tx)

    logger.info(
        "Loaded %d transactions and %d projected expenses from %s (%d rows skipped)",
        len(result.transactions),
        len(result.projected),
        path,
        len(result.skipped_lines),
    )
    return result


def _transaction_row(tx: Transaction) -> List[str]:
    return [
        tx.name,
        format_amount(tx.amount),
        tx.category,
        tx.criticality,
        tx.transaction_date,
        tx.account,
        tx.status,
        tx.created_time,
        tx.payment_method,
    ]


def _projected_row(expense: ProjectedExpense) -> List[str]:
    return [
        expense.subcategory,
        format_amount(expense.amount),
        expense.subcategory,
        expense.criticality,
        "",
        expense.person,
        ACTIVE_STATUS,
        "",
        "",
    ]


def _write_lines(path: Path, header: Sequence[str], rows: Iterable[Sequence[object]]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as fh:
            fh.write(join_fields(header) + "\n")
            for row in rows:
                fh.write(join_fields(row) + "\n")
    except OSError as exc:
        raise BudgetFileError(path, f"Failed to write CSV ({exc.strerror or exc})") from exc


def save_budget_csv(
    path: str | Path,
    transactions: Iterable[Transaction],
    projected: Iterable[ProjectedExpense] = (),
) -> Path:
    """Write transactions, then projections as ``active`` rows, to ``path``."""

    path = Path(path)
    rows = [_transaction_row(tx) for tx in transactions]
    rows.extend(_projected_row(expense) for expense in projected)
    _write_lines(path, BUDGET_HEADER, rows)
    logger.info("Saved %d rows to %s", len(rows), path)
    return path


def ensure_csv_file(path: str | Path, header: Sequence[str] = BUDGET_HEADER) -> Path:
    """Create ``path`` with ``header`` if it does not exist yet."""

    path = Path(path)
    if path.exists():
        if not path.is_file():
            raise BudgetFileError(path, "Budget path is not a file")
        return path
    _write_lines(path, header, [])
    logger.info("Created new CSV at %s", path)
    return path


def load_projected_csv(path: str | Path) -> List[ProjectedExpense]:
    """Read the ``projections.csv`` companion file; a missing file means no projections."""

    path = Path(path)
    if not path.exists():
        return []
    projected: List[ProjectedExpense] = []
    try:
        with path.open(newline="", encoding="utf-8-sig") as fh:
            reader = csv.DictReader(fh)
            for record in reader:
                try:
                    projected.append(
                        ProjectedExpense(
                            person=record.get("Person") or "",
                            criticality=record.get("Criticality") or "",
                            subcategory=record.get("Subcategory") or "",
                            amount=parse_amount(record.get("Amount")),
                            is_joint=same_text(record.get("Joint"), "true"),
                        )
                    )
                except ValueError as exc:
                    logger.warning("Line %d of %s: %s; skipping", reader.line_num, path, exc)
    except OSError as exc:
        raise BudgetFileError(path, f"Failed to read projections ({exc.strerror or exc})") from exc
    return projected


def save_projected_csv(path: str | Path, projected: Iterable[ProjectedExpense]) -> Path:
    path = Path(path)
    rows = [
        [
            expense.person,
            expense.criticality,
            expense.subcategory,
            f"{expense.amount:.2f}",
            "true" if expense.is_joint else "false",
        ]
        for expense in projected
    ]
    _write_lines(path, PROJECTED_HEADER, rows)
    return path


def import_new_transactions(
    existing: Sequence[Transaction], path: str | Path, legacy_split: bool = False
) -> ImportResult:
    """Read ``path`` and return the actual transactions not already in ``existing``.

    ``active`` rows are ignored; duplicates are matched on name, amount,
    category, account and transaction date.
    """

    loaded = load_budget_csv(path, legacy_split=legacy_split)
    seen = {tx.duplicate_key for tx in existing}
    result = ImportResult(skipped_lines=list(loaded.skipped_lines))
    for tx in loaded.transactions:
        if tx.duplicate_key in seen:
            result.duplicates.append(tx)
            continue
        seen.add(tx.duplicate_key)
        result.imported.append(tx)
    logger.info(
        "Imported %d new transactions from %s (%d duplicates)",
        len(result.imported),
        path,
        len(result.duplicates),
    )
    return result


def filter_by_date(
    transactions: Iterable[Transaction], start: date, end: date
) -> List[Transaction]:
    """Return transactions whose date falls between ``start`` and ``end``.

    Rows with an unreadable date are left out.
    """

    selected: List[Transaction] = []
    for tx in transactions:
        occurred = parse_transaction_date(tx.transaction_date)
        if occurred is not None and start <= occurred <= end:
            selected.append(tx)
    return selected
