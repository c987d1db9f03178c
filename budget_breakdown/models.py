"""Data models used by the budget breakdown tools."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .csv_codec import parse_amount

JOSH = "Josh"
ANNA = "Anna"
JOINT = "Joint"
PEOPLE = (JOSH, ANNA)

ESSENTIAL = "Essential"
NON_ESSENTIAL = "NonEssential"
CRITICALITIES = (ESSENTIAL, NON_ESSENTIAL)

DEFAULT_STATUS = "imported"
ACTIVE_STATUS = "active"
SPLIT_MARKER = " [Split Joint]"
UNCATEGORIZED = "(Uncategorized)"


def normalize_criticality(value: str | None) -> str:
    """Strip ``value`` and drop internal spaces (``"Non Essential"`` -> ``"NonEssential"``)."""

    return (value or "").strip().replace(" ", "")


def canonical_criticality(value: str | None) -> Optional[str]:
    """Return ``Essential``/``NonEssential`` for a case-insensitive match, else ``None``."""

    key = normalize_criticality(value).lower()
    for criticality in CRITICALITIES:
        if criticality.lower() == key:
            return criticality
    return None


def canonical_person(value: str | None) -> Optional[str]:
    """Return ``Josh``/``Anna`` for a case-insensitive match, else ``None``."""

    key = (value or "").strip().lower()
    for person in PEOPLE:
        if person.lower() == key:
            return person
    return None


def is_joint_account(value: str | None) -> bool:
    return (value or "").strip().lower() == JOINT.lower()


def same_text(left: str | None, right: str | None) -> bool:
    """Case-insensitive comparison after trimming both sides."""

    return (left or "").strip().lower() == (right or "").strip().lower()


@dataclass(frozen=True)
class Transaction:
    """Represents a single row of the budget CSV."""

    name: str
    amount: float
    category: str
    criticality: str
    transaction_date: str = ""
    account: str = ""
    status: str = DEFAULT_STATUS
    created_time: str = ""
    payment_method: str = ""
    statement_period: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "criticality", normalize_criticality(self.criticality))
        if not isinstance(self.amount, (int, float)):
            object.__setattr__(self, "amount", parse_amount(self.amount))
        else:
            object.__setattr__(self, "amount", float(self.amount))
        if not (self.status or "").strip():
            object.__setattr__(self, "status", DEFAULT_STATUS)

    @property
    def is_joint(self) -> bool:
        return is_joint_account(self.account)

    @property
    def is_projected(self) -> bool:
        return same_text(self.status, ACTIVE_STATUS)

    @property
    def duplicate_key(self) -> Tuple[str, float, str, str, str]:
        """Fields that identify the same spending event across imports."""

        return (
            self.name,
            round(self.amount, 2),
            self.category,
            self.account,
            self.transaction_date,
        )

    @property
    def transaction_hash(self) -> str:
        fields = (
            self.name,
            f"{self.amount:.2f}",
            self.category,
            self.transaction_date,
            self.account,
            self.statement_period,
        )
        source = "".join(("null" if field is None else field.strip()) + "|" for field in fields)
        return hashlib.sha256(source.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class ProjectedExpense:
    """A planned spending amount attributed to one person.

    Joint projections are stored as two records (one per person) that each
    carry half of the amount and ``is_joint=True``; use :meth:`create` to build
    them from user input.
    """

    person: str
    criticality: str
    subcategory: str
    amount: float
    is_joint: bool = False

    def __post_init__(self) -> None:
        if is_joint_account(self.person):
            raise ValueError("Joint projections must be split with ProjectedExpense.create()")
        person = canonical_person(self.person)
        if person is None:
            raise ValueError(f"Unknown person for projected expense: {self.person!r}")
        object.__setattr__(self, "person", person)
        object.__setattr__(self, "criticality", normalize_criticality(self.criticality))
        object.__setattr__(self, "subcategory", (self.subcategory or "").strip())
        object.__setattr__(self, "amount", float(self.amount))

    @classmethod
    def create(
        cls, person: str, criticality: str, subcategory: str, amount: float
    ) -> Tuple["ProjectedExpense", ...]:
        """Return the records for one entry, splitting ``Joint`` across both people."""

        if is_joint_account(person):
            half = float(amount) / 2.0
            return tuple(
                cls(individual, criticality, subcategory, half, is_joint=True)
                for individual in PEOPLE
            )
        return (cls(person, criticality, subcategory, amount),)

    def matches(self, person: str, criticality: str, category: str) -> bool:
        return (
            same_text(self.person, person)
            and same_text(self.criticality, normalize_criticality(criticality))
            and same_text(self.subcategory, category)
        )

    @property
    def label(self) -> str:
        suffix = " (Joint)" if self.is_joint else ""
        return f"{self.person} - {self.criticality} - {self.subcategory}: ${self.amount:,.2f}{suffix}"


def split_joint(tx: Transaction, individual: str) -> Optional[Transaction]:
    """Return the half of a Joint transaction attributed to ``individual``.

    ``None`` is returned when ``tx`` is not a Joint transaction or
    ``individual`` is not one of the two people.
    """

    person = canonical_person(individual)
    if person is None or not tx.is_joint:
        return None
    return replace(
        tx,
        name=tx.name + SPLIT_MARKER,
        amount=tx.amount / 2.0,
        account=person,
    )


def attribute_to(tx: Transaction, individual: str) -> Optional[Transaction]:
    """Return what ``individual`` owes for ``tx``: the row itself, a split half or ``None``."""

    if same_text(tx.account, individual):
        return tx
    return split_joint(tx, individual)
