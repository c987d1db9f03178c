from datetime import date

import pytest

from budget_breakdown.loader import (
    BUDGET_HEADER,
    PROJECTED_HEADER,
    BudgetFileError,
    ensure_csv_file,
    filter_by_date,
    import_new_transactions,
    load_budget_csv,
    load_projected_csv,
    save_budget_csv,
    save_projected_csv,
)
from budget_breakdown.models import ProjectedExpense, Transaction

HEADER = ",".join(BUDGET_HEADER)


def write_csv(path, *lines):
    path.write_text("\n".join((HEADER,) + lines) + "\n", encoding="utf-8")
    return path


def make_transaction(**kwargs):
    base = dict(
        name="Item",
        amount=0.0,
        category="Groceries",
        criticality="Essential",
        transaction_date="October 1, 2025",
        account="Josh",
        status="imported",
        created_time="October 1, 2025 9:00 AM",
        payment_method="Visa",
    )
    base.update(kwargs)
    return Transaction(**base)


def test_load_budget_csv_reads_transactions(tmp_path):
    path = write_csv(
        tmp_path / "budget.csv",
        'Costco,"$1,234.56",Groceries,Essential,"October 2, 2025",Joint,imported,"October 2, 2025 8:00 PM",Visa',
        'Cinema,$30.00,Fun,Non Essential,"October 3, 2025",Anna,,"October 3, 2025 7:00 PM"',
    )

    result = load_budget_csv(path)

    costco, cinema = result.transactions
    assert costco.amount == 1234.56
    assert costco.transaction_date == "October 2, 2025"
    assert costco.account == "Joint"
    assert costco.payment_method == "Visa"
    assert cinema.criticality == "NonEssential"
    assert cinema.status == "imported"
    assert cinema.payment_method == ""
    assert result.skipped_lines == []


def test_load_budget_csv_skips_short_blank_and_unnamed_rows(tmp_path):
    path = write_csv(
        tmp_path / "budget.csv",
        "Short,$1.00,Groceries",
        "",
        ",$5.00,Groceries,Essential,,Josh,imported,,Visa",
        "Milk,$4.00,Groceries,Essential,,Josh,imported,,Visa",
    )

    result = load_budget_csv(path)

    assert [tx.name for tx in result.transactions] == ["Milk"]
    assert result.skipped_lines == [2]


def test_legacy_split_reads_the_same_rows(tmp_path):
    path = write_csv(
        tmp_path / "budget.csv",
        'Costco,"$1,234.56",Groceries,Essential,"October 2, 2025",Joint,imported,,Visa',
        ",orphan,row",
    )

    result = load_budget_csv(path, legacy_split=True)

    assert [(tx.name, tx.amount) for tx in result.transactions] == [("Costco", 1234.56)]


def test_active_rows_become_projected_expenses(tmp_path):
    path = write_csv(
        tmp_path / "budget.csv",
        "Groceries,$200.00,Groceries,Essential,,Joint,active,,",
        "Dining,$50.00,Dining,NonEssential,,Anna,Active,,",
        "Bad,$10.00,Misc,Essential,,Somebody,active,,",
    )

    result = load_budget_csv(path)

    assert result.transactions == []
    assert [(pe.person, pe.subcategory, pe.amount) for pe in result.projected] == [
        ("Josh", "Groceries", 100),
        ("Anna", "Groceries", 100),
        ("Anna", "Dining", 50),
    ]
    assert result.skipped_lines == [4]


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "out" / "budget.csv"
    transactions = [
        make_transaction(name='Costco, "bulk" run', amount=1234.5, account="Joint"),
        make_transaction(name="Refund", amount=-20),
    ]
    projected = [ProjectedExpense("Anna", "NonEssential", "Dining", 75)]

    save_budget_csv(path, transactions, projected)
    result = load_budget_csv(path)

    assert result.transactions == transactions
    assert result.projected == projected


def test_ensure_csv_file_creates_header_once(tmp_path):
    path = tmp_path / "nested" / "budget.csv"
    ensure_csv_file(path)
    assert path.read_text(encoding="utf-8") == HEADER + "\n"

    path.write_text(HEADER + "\nMilk,$4.00,Groceries,Essential,,Josh,imported,,\n", encoding="utf-8")
    ensure_csv_file(path)
    assert "Milk" in path.read_text(encoding="utf-8")


def test_ensure_csv_file_rejects_directories(tmp_path):
    with pytest.raises(BudgetFileError) as excinfo:
        ensure_csv_file(tmp_path)
    assert excinfo.value.path == tmp_path


def test_missing_budget_csv_raises_budget_file_error(tmp_path):
    with pytest.raises(BudgetFileError):
        load_budget_csv(tmp_path / "missing.csv")


def test_projected_csv_round_trip(tmp_path):
    path = tmp_path / "projections.csv"
    projected = list(ProjectedExpense.create("Joint", "Essential", "Rent", 1500))
    projected.append(ProjectedExpense("Josh", "NonEssential", "Games", 60))

    save_projected_csv(path, projected)

    assert path.read_text(encoding="utf-8").splitlines()[0] == ",".join(PROJECTED_HEADER)
    assert load_projected_csv(path) == projected
    assert load_projected_csv(tmp_path / "absent.csv") == []


def test_import_new_transactions_skips_duplicates(tmp_path):
    existing = [make_transaction(name="Milk", amount=4, transaction_date="October 1, 2025")]
    path = write_csv(
        tmp_path / "import.csv",
        'Milk,$4.00,Groceries,Essential,"October 1, 2025",Josh,imported,,Visa',
        'Bread,$3.00,Groceries,Essential,"October 1, 2025",Josh,imported,,Visa',
        'Bread,$3.00,Groceries,Essential,"October 1, 2025",Josh,imported,,Visa',
        "Plan,$9.00,Groceries,Essential,,Josh,active,,",
    )

    result = import_new_transactions(existing, path)

    assert [tx.name for tx in result.imported] == ["Bread"]
    assert [tx.name for tx in result.duplicates] == ["Milk", "Bread"]
    assert result.imported_count == 1


def test_filter_by_date_keeps_rows_inside_the_period():
    transactions = [
        make_transaction(name="before", transaction_date="October 12, 2025"),
        make_transaction(name="start", transaction_date="October 13, 2025"),
        make_transaction(name="iso", transaction_date="2025-11-12"),
        make_transaction(name="after", transaction_date="Nov 13, 2025"),
        make_transaction(name="unknown", transaction_date="someday"),
    ]
    selected = filter_by_date(transactions, date(2025, 10, 13), date(2025, 11, 12))
    assert [tx.name for tx in selected] == ["start", "iso"]


def test_junk_amounts_do_not_poison_totals(tmp_path):
    path = write_csv(
        tmp_path / "budget.csv",
        "A,nan,Groceries,Essential,,Josh,imported,,",
        "B,inf,Groceries,Essential,,Josh,imported,,",
        "C,$10.00,Groceries,Essential,,Josh,imported,,",
    )
    transactions = load_budget_csv(path).transactions
    assert [tx.amount for tx in transactions] == [0.0, 0.0, 10.0]
    assert sum(tx.amount for tx in transactions) == 10.0
