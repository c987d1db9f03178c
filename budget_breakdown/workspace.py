"""Local cache state and hashed workspace snapshots."""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .loader import BudgetFileError
from .logging_config import get_logger
from .models import ProjectedExpense, Transaction

logger = get_logger(__name__)

CACHE_VERSION = "1"
SECTIONS = ("budget_transactions", "projected_expenses", "local_cache_state")


@dataclass
class LocalCacheState:
    """Last-used paths and period bookkeeping kept between runs."""

    budget_csv_path: Optional[str] = None
    projected_csv_path: Optional[str] = None
    last_view: Optional[str] = None
    current_statement_period: Optional[str] = None
    recent_budget_files: List[str] = field(default_factory=list)
    statement_periods: List[str] = field(default_factory=list)
    statement_period_files: Dict[str, str] = field(default_factory=dict)
    version: str = CACHE_VERSION

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LocalCacheState":
        return cls(
            budget_csv_path=data.get("budget_csv_path"),
            projected_csv_path=data.get("projected_csv_path"),
            last_view=data.get("last_view"),
            current_statement_period=data.get("current_statement_period"),
            recent_budget_files=list(data.get("recent_budget_files") or []),
            statement_periods=list(data.get("statement_periods") or []),
            statement_period_files=dict(data.get("statement_period_files") or {}),
            version=str(data.get("version") or CACHE_VERSION),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def remember_budget_file(self, path: str | Path, limit: int = 5) -> None:
        text = str(path)
        self.budget_csv_path = text
        self.recent_budget_files = [text] + [p for p in self.recent_budget_files if p != text]
        del self.recent_budget_files[limit:]

    def register_statement_period(self, period: str, archive_file: str | None = None) -> None:
        if period not in self.statement_periods:
            self.statement_periods.append(period)
        if archive_file:
            self.statement_period_files[period] = archive_file
        self.current_statement_period = period


def load_cache(path: str | Path) -> LocalCacheState:
    """Load the cache file; a missing or unreadable file yields an empty state."""

    path = Path(path)
    if not path.exists():
        return LocalCacheState()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable cache file %s: %s", path, exc)
        return LocalCacheState()
    if not isinstance(data, dict):
        logger.warning("Ignoring cache file %s with unexpected content", path)
        return LocalCacheState()
    return LocalCacheState.from_dict(data)


def save_cache(path: str | Path, state: LocalCacheState) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(state.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
    except OSError as exc:
        raise BudgetFileError(path, f"Failed to write cache ({exc.strerror or exc})") from exc
    return path


def section_hash(section: Any) -> str:
    """Base64-encoded SHA-256 of the canonical JSON form of ``section``."""

    payload = json.dumps(section, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(payload.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def build_snapshot(
    transactions: Sequence[Transaction],
    projected: Sequence[ProjectedExpense],
    cache: LocalCacheState,
    now: datetime | None = None,
) -> Dict[str, Any]:
    """Serialise the workspace into a document with one hash per section."""

    sections = {
        "budget_transactions": [asdict(tx) for tx in transactions],
        "projected_expenses": [asdict(pe) for pe in projected],
        "local_cache_state": cache.to_dict(),
    }
    return {
        "created_at": (now or datetime.now(timezone.utc)).isoformat(),
        "sections": sections,
        "hashes": {name: section_hash(value) for name, value in sections.items()},
    }


def verify_snapshot(snapshot: Mapping[str, Any]) -> List[str]:
    """Return the names of sections whose stored hash does not match their content."""

    sections = snapshot.get("sections") or {}
    hashes = snapshot.get("hashes") or {}
    mismatched = [
        name
        for name in SECTIONS
        if name not in sections or hashes.get(name) != section_hash(sections[name])
    ]
    if mismatched:
        logger.warning("Snapshot sections failed verification: %s", ", ".join(mismatched))
    return mismatched
