import pytest

from budget_breakdown.config import BudgetConfig
from budget_breakdown.loader import BUDGET_HEADER, load_budget_csv, load_projected_csv
from budget_breakdown.session import BudgetSession
from budget_breakdown.workspace import load_cache

HEADER = ",".join(BUDGET_HEADER)


@pytest.fixture
def budget_csv(tmp_path):
    path = tmp_path / "budget.csv"
    path.write_text(
        "\n".join(
            [
                HEADER,
                'Costco,$300.00,Groceries,Essential,"October 14, 2025",Josh,imported,,Visa',
                'Rent,"$2,000.00",Housing,Essential,"October 15, 2025",Joint,imported,,Amex',
                "Dining,$40.00,Dining,NonEssential,,Joint,active,,",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return path


def test_open_loads_transactions_and_active_rows(budget_csv):
    session = BudgetSession.open(BudgetConfig(csv_path=budget_csv))

    assert [tx.name for tx in session.transactions] == ["Costco", "Rent"]
    assert [(pe.person, pe.amount) for pe in session.projected] == [("Josh", 20), ("Anna", 20)]
    assert session.cache.budget_csv_path == str(budget_csv)
    assert len(session.collection) == 2


def test_save_moves_projections_to_their_own_file(budget_csv, tmp_path):
    session = BudgetSession.open(BudgetConfig(csv_path=budget_csv))
    session.apply_goal("Josh", "Essential", "Groceries", 800, 10)
    session.save()

    assert load_budget_csv(budget_csv).projected == []
    saved = load_projected_csv(tmp_path / "projections.csv")
    assert [(pe.person, pe.subcategory, pe.amount) for pe in saved] == [
        ("Josh", "Dining", 20),
        ("Anna", "Dining", 20),
        ("Josh", "Groceries", 500),
    ]
    assert load_cache(tmp_path / "budget_cache.json").last_view == "Josh"

    reopened = BudgetSession.open(BudgetConfig(csv_path=budget_csv))
    assert reopened.projected == session.projected
    assert reopened.transactions == session.transactions


def test_breakdown_includes_projections_unless_excluded(budget_csv):
    session = BudgetSession.open(BudgetConfig(csv_path=budget_csv))
    assert session.breakdown().total("Anna") == 1020
    assert session.breakdown(include_projected=False).total("Anna") == 1000


def test_add_and_remove_projected(budget_csv):
    session = BudgetSession.open(BudgetConfig(csv_path=budget_csv))
    session.add_projected("Anna", "NonEssential", "Books", 25)
    assert session.projected[-1].subcategory == "Books"
    session.remove_projected([0, 1])
    assert [pe.subcategory for pe in session.projected] == ["Books"]


def test_import_file_appends_new_transactions(budget_csv, tmp_path):
    other = tmp_path / "bank.csv"
    other.write_text(
        "\n".join(
            [
                HEADER,
                'Costco,$300.00,Groceries,Essential,"October 14, 2025",Josh,imported,,Visa',
                'Fuel,$60.00,Transport,Essential,"October 16, 2025",Anna,imported,,Visa',
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    session = BudgetSession.open(BudgetConfig(csv_path=budget_csv))

    result = session.import_file(other)

    assert result.imported_count == 1
    assert [tx.name for tx in session.transactions] == ["Costco", "Rent", "Fuel"]


def test_export_combined_writes_projections_as_active_rows(budget_csv, tmp_path):
    session = BudgetSession.open(BudgetConfig(csv_path=budget_csv))
    path = session.export_combined(tmp_path / "combined.csv")
    loaded = load_budget_csv(path)
    assert len(loaded.transactions) == 2
    assert [(pe.person, pe.amount) for pe in loaded.projected] == [("Josh", 20), ("Anna", 20)]


def test_csv_path_is_required():
    with pytest.raises(ValueError):
        BudgetSession(config=BudgetConfig()).csv_path


def test_rollover_archives_and_clears_the_budget_csv(budget_csv, tmp_path):
    session = BudgetSession.open(BudgetConfig(csv_path=budget_csv))
    before = budget_csv.read_text(encoding="utf-8")

    archive = session.rollover("2025-10-13_to_2025-11-12", "2025-09-13_to_2025-10-12")

    assert archive == budget_csv.with_name("budget_2025-09-13_to_2025-10-12.csv")
    assert archive.read_text(encoding="utf-8") == before
    assert budget_csv.read_text(encoding="utf-8") == HEADER + "\n"
    assert session.transactions == ()
    assert len(session.projected) == 2

    cache = load_cache(tmp_path / "budget_cache.json")
    assert cache.current_statement_period == "2025-10-13_to_2025-11-12"
    assert cache.statement_periods == ["2025-09-13_to_2025-10-12", "2025-10-13_to_2025-11-12"]
    assert cache.statement_period_files == {
        "2025-09-13_to_2025-10-12": "budget_2025-09-13_to_2025-10-12.csv"
    }


def test_rollover_uses_cached_current_period(budget_csv):
    session = BudgetSession.open(BudgetConfig(csv_path=budget_csv))
    session.cache.current_statement_period = "2025-09-13_to_2025-10-12"
    archive = session.rollover("2025-10-13_to_2025-11-12")
    assert archive.name == "budget_2025-09-13_to_2025-10-12.csv"


@pytest.mark.parametrize(
    "new_period,current",
    [
        ("2025-10-13_to_2025-11-12", None),
        ("not-a-period", "2025-09-13_to_2025-10-12"),
        ("2025-10-13_to_2025-11-12", "2025-10-13_to_2025-11-12"),
    ],
)
def test_rollover_rejects_unusable_periods(budget_csv, new_period, current):
    session = BudgetSession.open(BudgetConfig(csv_path=budget_csv))
    with pytest.raises(ValueError):
        session.rollover(new_period, current)
    assert "Costco" in budget_csv.read_text(encoding="utf-8")
