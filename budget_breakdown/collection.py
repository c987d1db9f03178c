"""Filtering and totals over an immutable snapshot of transactions."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .csv_codec import parse_amount
from .logging_config import get_logger
from .models import (
    UNCATEGORIZED,
    Transaction,
    attribute_to,
    canonical_person,
    normalize_criticality,
    same_text,
)

logger = get_logger(__name__)

Getter = Callable[[Transaction], Optional[str]]


def _amount_matches(tx: Transaction, value: str) -> bool:
    return round(tx.amount, 2) == round(parse_amount(value), 2)


class TransactionCollection:
    """Wraps the loaded transactions and derives filtered collections from them.

    The constructor copies its input, so later changes to the caller's list
    never leak into the collection. Every filter returns a new collection.
    Filtering by ``Josh`` or ``Anna`` attributes half of each Joint
    transaction to that person.
    """

    def __init__(
        self, transactions: Iterable[Transaction] | None = None, description: str = ""
    ) -> None:
        self._transactions: Tuple[Transaction, ...] = tuple(transactions or ())
        self.description = description
        self.total_amount = sum(tx.amount for tx in self._transactions)
        self.total_count = len(self._transactions)
        self._category_map: Optional[Dict[str, List[Transaction]]] = None

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self._transactions

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._transactions)

    def __len__(self) -> int:
        return self.total_count

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionCollection):
            return NotImplemented
        return (
            self._transactions == other._transactions
            and self.description == other.description
        )

    def __repr__(self) -> str:
        return (
            f"TransactionCollection(description={self.description!r}, "
            f"total_count={self.total_count}, total_amount={self.total_amount:.2f})"
        )

    def by_category(self) -> Dict[str, List[Transaction]]:
        if self._category_map is None:
            grouped: Dict[str, List[Transaction]] = defaultdict(list)
            for tx in self._transactions:
                grouped[tx.category or ""].append(tx)
            self._category_map = dict(grouped)
        return self._category_map

    # Field filters -------------------------------------------------------

    def filter_by_name(self, name: str, account: str | None = None) -> "TransactionCollection":
        return self._filter_field("Name", name, lambda tx: tx.name, account)

    def filter_by_amount(self, amount: str, account: str | None = None) -> "TransactionCollection":
        return self._filter(
            "Amount", amount, lambda tx: _amount_matches(tx, amount), account
        )

    def filter_by_category(self, category: str, account: str | None = None) -> "TransactionCollection":
        return self._filter_field("Category", category, lambda tx: tx.category, account)

    def filter_by_criticality(
        self, criticality: str, account: str | None = None
    ) -> "TransactionCollection":
        return self._filter_field(
            "Criticality", normalize_criticality(criticality), lambda tx: tx.criticality, account
        )

    def filter_by_transaction_date(
        self, transaction_date: str, account: str | None = None
    ) -> "TransactionCollection":
        return self._filter_field(
            "Transaction Date", transaction_date, lambda tx: tx.transaction_date, account
        )

    def filter_by_status(self, status: str, account: str | None = None) -> "TransactionCollection":
        return self._filter_field("status", status, lambda tx: tx.status, account)

    def filter_by_created_time(
        self, created_time: str, account: str | None = None
    ) -> "TransactionCollection":
        return self._filter_field("Created time", created_time, lambda tx: tx.created_time, account)

    def filter_by_payment_method(
        self, payment_method: str, account: str | None = None
    ) -> "TransactionCollection":
        return self._filter_field(
            "Payment Method", payment_method, lambda tx: tx.payment_method, account
        )

    def filter_by_statement_period(
        self, statement_period: str, account: str | None = None
    ) -> "TransactionCollection":
        return self._filter_field(
            "Statement Period", statement_period, lambda tx: tx.statement_period, account
        )

    def filter_by_account(self, account: str | None) -> "TransactionCollection":
        """Return the transactions charged to ``account``.

        ``Josh`` and ``Anna`` also receive a half-amount copy of every Joint
        transaction, renamed with a split marker and re-assigned to them. Any
        other account is an exact, case-insensitive match.
        """

        if account is None:
            logger.warning("filter_by_account called without an account; returning the full collection")
            return self
        selected = self._select(lambda tx: True, account)
        logger.debug("filter_by_account(%r) -> %d transactions", account, len(selected))
        return TransactionCollection(selected, self._describe(f"Account={account}"))

    def filter(self, column: str, value: str, account: str | None = None) -> "TransactionCollection":
        """Filter by CSV header name (``"Name"``, ``"Transaction Date"``, ...)."""

        key = (column or "").strip().lower()
        if key == "account":
            return self.filter_by_account(value)
        handlers = {
            "name": self.filter_by_name,
            "amount": self.filter_by_amount,
            "category": self.filter_by_category,
            "criticality": self.filter_by_criticality,
            "transaction date": self.filter_by_transaction_date,
            "status": self.filter_by_status,
            "created time": self.filter_by_created_time,
            "payment method": self.filter_by_payment_method,
            "statement period": self.filter_by_statement_period,
        }
        handler = handlers.get(key)
        if handler is None:
            raise ValueError(f"Unknown column for filter: {column!r}")
        return handler(value, account)

    # Per-person views ----------------------------------------------------

    def personalized_transactions(
        self, individual: str | None, criticality: str | None = None
    ) -> List[Transaction]:
        """Return ``individual``'s transactions with their half of each Joint one."""

        if individual is None:
            return list(self._transactions)
        wanted = normalize_criticality(criticality) if criticality is not None else None
        personalized: List[Transaction] = []
        for tx in self._transactions:
            if wanted is not None and not same_text(tx.criticality, wanted):
                continue
            attributed = attribute_to(tx, individual)
            if attributed is not None:
                personalized.append(attributed)
        return personalized

    def by_account_and_criticality(self, account: str, criticality: str) -> List[Transaction]:
        return list(self.filter_by_account(account).filter_by_criticality(criticality))

    def category_totals(self, account: str, criticality: str) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for tx in self.by_account_and_criticality(account, criticality):
            category = (tx.category or "").strip() or UNCATEGORIZED
            totals[category] += tx.amount
        return dict(totals)

    # Helpers -------------------------------------------------------------

    def _filter_field(
        self, field: str, value: str | None, getter: Getter, account: str | None
    ) -> "TransactionCollection":
        if value is None:
            predicate = lambda tx: True  # noqa: E731
        else:
            predicate = lambda tx: getter(tx) is not None and same_text(getter(tx), value)  # noqa: E731
        return self._filter(field, value, predicate, account)

    def _filter(
        self,
        field: str,
        value: str | None,
        predicate: Callable[[Transaction], bool],
        account: str | None,
    ) -> "TransactionCollection":
        selected = self._select(predicate, account)
        label = f"{field}={value}"
        if account is not None:
            label += f", Account={account}"
        logger.debug("filter %s -> %d transactions", label, len(selected))
        return TransactionCollection(selected, self._describe(label))

    def _select(
        self, predicate: Callable[[Transaction], bool], account: str | None
    ) -> List[Transaction]:
        selected: List[Transaction] = []
        splits_joint = account is not None and canonical_person(account) is not None
        for tx in self._transactions:
            if not predicate(tx):
                continue
            if account is None:
                selected.append(tx)
            elif splits_joint:
                attributed = attribute_to(tx, account)
                if attributed is not None:
                    selected.append(attributed)
            elif same_text(tx.account, account):
                selected.append(tx)
        return selected

    def _describe(self, label: str) -> str:
        prefix = f"{self.description} " if self.description else ""
        return f"{prefix}(Filtered: {label})"
