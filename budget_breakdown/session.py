"""The working set of transactions and projections for one budget file."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Tuple

from .collection import TransactionCollection
from .config import PROJECTIONS_FILENAME, BudgetConfig
from .loader import (
    BudgetFileError,
    ImportResult,
    import_new_transactions,
    load_budget_csv,
    load_projected_csv,
    save_budget_csv,
    save_projected_csv,
)
from .logging_config import get_logger
from .models import ProjectedExpense, Transaction
from .periods import parse_statement_period
from .projection import (
    GoalOutcome,
    add_projected_expense,
    apply_goal,
    remove_projected_expenses,
)
from .summary import Breakdown, build_breakdown
from .workspace import LocalCacheState, load_cache, save_cache

logger = get_logger(__name__)


@dataclass
class BudgetSession:
    """Owns the current transaction and projection lists.

    Both lists are tuples that are swapped out as a whole on every change.
    """

    config: BudgetConfig
    cache: LocalCacheState = field(default_factory=LocalCacheState)
    transactions: Tuple[Transaction, ...] = ()
    projected: Tuple[ProjectedExpense, ...] = ()

    @property
    def csv_path(self) -> Path:
        if self.config.csv_path is None:
            raise ValueError("No budget CSV configured")
        return Path(self.config.csv_path)

    @property
    def projected_csv_path(self) -> Optional[Path]:
        return self.config.resolved_projected_csv_path

    @property
    def collection(self) -> TransactionCollection:
        return TransactionCollection(self.transactions, self.csv_path.name)

    @classmethod
    def open(cls, config: BudgetConfig, legacy_split: bool = False) -> "BudgetSession":
        """Load the budget CSV (and its ``projections.csv``) named by ``config``."""

        cache_path = config.resolved_cache_path
        cache = load_cache(cache_path) if cache_path is not None else LocalCacheState()
        session = cls(config=config, cache=cache)
        session.reload(legacy_split=legacy_split)
        return session

    def reload(self, legacy_split: bool = False) -> None:
        loaded = load_budget_csv(self.csv_path, legacy_split=legacy_split)
        projected = list(loaded.projected)
        if self.projected_csv_path is not None:
            projected.extend(load_projected_csv(self.projected_csv_path))
        self.transactions = tuple(loaded.transactions)
        self.projected = tuple(projected)
        self.cache.remember_budget_file(self.csv_path)

    def save(self) -> None:
        """Write actual transactions to the budget CSV and projections to their own file."""

        projected_path = self.projected_csv_path or self.csv_path.parent / PROJECTIONS_FILENAME
        save_budget_csv(self.csv_path, self.transactions)
        save_projected_csv(projected_path, self.projected)
        self.save_cache()
        logger.info(
            "Saved %d transactions and %d projections", len(self.transactions), len(self.projected)
        )

    def export_combined(self, path: str | Path) -> Path:
        """Write a single CSV with projections appended as ``active`` rows."""

        return save_budget_csv(path, self.transactions, self.projected)

    def save_cache(self) -> None:
        cache_path = self.config.resolved_cache_path
        if cache_path is None:
            return
        self.cache.last_view = self.cache.last_view or self.config.last_view
        save_cache(cache_path, self.cache)

    def breakdown(self, include_projected: bool = True) -> Breakdown:
        return build_breakdown(self.transactions, self.projected, include_projected=include_projected)

    def apply_goal(
        self, person: str, criticality: str, category: str, goal: float, days_remaining: int
    ) -> GoalOutcome:
        outcome = apply_goal(
            self.transactions, self.projected, person, criticality, category, goal, days_remaining
        )
        self.projected = outcome.projected_expenses
        return outcome

    def add_projected(self, person: str, criticality: str, subcategory: str, amount: float) -> None:
        self.projected = add_projected_expense(self.projected, person, criticality, subcategory, amount)

    def remove_projected(self, indices: Iterable[int]) -> None:
        self.projected = remove_projected_expenses(self.projected, indices)

    def import_file(self, path: str | Path, legacy_split: bool = False) -> ImportResult:
        result = import_new_transactions(self.transactions, path, legacy_split=legacy_split)
        self.transactions = self.transactions + tuple(result.imported)
        return result

    def rollover(self, new_period: str, current_period: str | None = None) -> Path:
        """Archive the budget CSV for the closing period and start ``new_period``.

        The file is copied to ``budget_<period>.csv`` next to it and then reset
        to its header. Projections are kept. The cache records the archive and
        the new current period.
        """

        current = current_period or self.cache.current_statement_period
        if not current:
            raise ValueError("Current statement period is not set; cannot archive")
        for period in (current, new_period):
            if parse_statement_period(period) is None:
                raise ValueError(f"Invalid statement period: {period!r}")
        if current == new_period:
            raise ValueError(f"Statement period {new_period} is already current")

        archive = self.csv_path.with_name(f"budget_{current}.csv")
        try:
            shutil.copyfile(self.csv_path, archive)
        except OSError as exc:
            raise BudgetFileError(archive, f"Failed to archive statement ({exc.strerror or exc})") from exc
        logger.info("Archived %s to %s", self.csv_path, archive)

        save_budget_csv(self.csv_path, [])
        self.transactions = ()
        self.cache.register_statement_period(current, archive.name)
        self.cache.register_statement_period(new_period)
        self.save_cache()
        logger.info("Rolled over from %s to %s", current, new_period)
        return archive
