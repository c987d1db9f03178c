"""Explicit configuration values for the budget tools."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECTIONS_FILENAME = "projections.csv"
CACHE_FILENAME = "budget_cache.json"


def projections_path_for(csv_path: str | Path) -> Path:
    """Return the ``projections.csv`` that sits next to ``csv_path``."""

    return Path(csv_path).expanduser().resolve().parent / PROJECTIONS_FILENAME


def _env_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return Path(value.strip()).expanduser()


@dataclass(frozen=True)
class BudgetConfig:
    """Paths and preferences handed to the loader, cache and CLI.

    ``projected_csv_path`` and ``cache_path`` fall back to files derived from
    ``csv_path`` when they are not given explicitly.
    """

    csv_path: Optional[Path] = None
    projected_csv_path: Optional[Path] = None
    cache_path: Optional[Path] = None
    data_dir: Optional[Path] = None
    last_view: str = "Josh"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "BudgetConfig":
        if load_env_file:
            load_dotenv()
        return cls(
            csv_path=_env_path("BUDGET_CSV_PATH"),
            projected_csv_path=_env_path("BUDGET_PROJECTED_CSV_PATH"),
            cache_path=_env_path("BUDGET_CACHE_PATH"),
            data_dir=_env_path("BUDGET_DATA_DIR"),
            last_view=os.getenv("BUDGET_LAST_VIEW", "Josh").strip() or "Josh",
            log_level=os.getenv("BUDGET_LOG_LEVEL", "WARNING").strip() or "WARNING",
        )

    def with_csv_path(self, csv_path: str | Path) -> "BudgetConfig":
        return replace(self, csv_path=Path(csv_path).expanduser())

    @property
    def resolved_projected_csv_path(self) -> Optional[Path]:
        if self.projected_csv_path is not None:
            return self.projected_csv_path
        if self.csv_path is None:
            return None
        return projections_path_for(self.csv_path)

    @property
    def resolved_cache_path(self) -> Optional[Path]:
        if self.cache_path is not None:
            return self.cache_path
        if self.data_dir is not None:
            return Path(self.data_dir) / CACHE_FILENAME
        if self.csv_path is None:
            return None
        return Path(self.csv_path).expanduser().resolve().parent / CACHE_FILENAME
