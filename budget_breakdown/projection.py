"""Weekly budget projections derived from spending goals."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .logging_config import get_logger
from .models import (
    PEOPLE,
    ProjectedExpense,
    Transaction,
    attribute_to,
    canonical_criticality,
    canonical_person,
    is_joint_account,
    same_text,
)

logger = get_logger(__name__)


class InvalidInputError(ValueError):
    """Raised when a required user-supplied value cannot be used."""


@dataclass(frozen=True)
class ProjectionResult:
    weeks: int
    projected_amount: float
    per_week: float


@dataclass(frozen=True)
class Projection:
    """The outcome of a goal calculation for one person."""

    person: str
    criticality: str
    category: str
    goal: float
    actual_spent: float
    already_projected: float
    weeks: int
    projected_amount: float
    per_week: float

    @property
    def needed(self) -> bool:
        return self.projected_amount > 0


@dataclass(frozen=True)
class GoalOutcome:
    projected_expenses: Tuple[ProjectedExpense, ...]
    projections: Tuple[Projection, ...]


def weeks_remaining(days_remaining: int) -> int:
    return max(1, math.ceil(days_remaining / 7))


def calculate_projection(
    goal_amount: float,
    days_remaining: int,
    actual_spent: float,
    already_projected: float,
) -> ProjectionResult:
    """Spread what is left of ``goal_amount`` over the remaining weeks.

    >>> calculate_projection(800, 10, 300, 0)
    ProjectionResult(weeks=2, projected_amount=500.0, per_week=250.0)
    """

    weeks = weeks_remaining(days_remaining)
    projected_amount = max(0.0, float(goal_amount) - actual_spent - already_projected)
    return ProjectionResult(
        weeks=weeks,
        projected_amount=projected_amount,
        per_week=projected_amount / weeks,
    )


def actual_spent_for(
    transactions: Iterable[Transaction], person: str, criticality: str, category: str
) -> float:
    """Sum ``person``'s spending in a category, counting half of Joint rows."""

    total = 0.0
    for tx in transactions:
        if not same_text(tx.category, category):
            continue
        if canonical_criticality(tx.criticality) != canonical_criticality(criticality):
            continue
        attributed = attribute_to(tx, person)
        if attributed is not None:
            total += attributed.amount
    return total


def projected_for(
    projected: Iterable[ProjectedExpense], person: str, criticality: str, category: str
) -> float:
    return sum(pe.amount for pe in projected if pe.matches(person, criticality, category))


def _project_for_person(
    transactions: Sequence[Transaction],
    projected: List[ProjectedExpense],
    person: str,
    criticality: str,
    category: str,
    goal: float,
    days_remaining: int,
) -> Projection:
    actual = actual_spent_for(transactions, person, criticality, category)
    already = projected_for(projected, person, criticality, category)
    result = calculate_projection(goal, days_remaining, actual, already)

    # Replace rather than stack entries for the same key.
    projected[:] = [pe for pe in projected if not pe.matches(person, criticality, category)]
    if result.projected_amount > 0:
        projected.append(ProjectedExpense(person, criticality, category, result.projected_amount))

    logger.info(
        "Projection for %s/%s/%s: goal=%.2f actual=%.2f projected=%.2f -> %.2f (%.2f/week over %d weeks)",
        person,
        criticality,
        category,
        goal,
        actual,
        already,
        result.projected_amount,
        result.per_week,
        result.weeks,
    )
    return Projection(
        person=person,
        criticality=criticality,
        category=category,
        goal=goal,
        actual_spent=actual,
        already_projected=already,
        weeks=result.weeks,
        projected_amount=result.projected_amount,
        per_week=result.per_week,
    )


def apply_goal(
    transactions: Sequence[Transaction],
    projected: Sequence[ProjectedExpense],
    person: str,
    criticality: str,
    category: str,
    goal: float,
    days_remaining: int,
) -> GoalOutcome:
    """Recompute the projected expense for one person/criticality/category.

    Existing projections for the key are removed and the new one (if any) is
    appended to a fresh tuple; ``projected`` itself is left untouched. A
    ``Joint`` goal is halved and applied to each person independently.
    """

    canonical = canonical_criticality(criticality)
    if canonical is None:
        raise InvalidInputError(f"Unknown criticality: {criticality!r}")
    category = (category or "").strip()
    if not category:
        raise InvalidInputError("Please enter a category name.")

    updated = list(projected)
    if is_joint_account(person):
        people: Tuple[str, ...] = PEOPLE
        per_person_goal = goal / 2.0
    else:
        individual = canonical_person(person)
        if individual is None:
            raise InvalidInputError(f"Unknown person: {person!r}")
        people = (individual,)
        per_person_goal = goal

    projections = tuple(
        _project_for_person(
            transactions, updated, individual, canonical, category, per_person_goal, days_remaining
        )
        for individual in people
    )
    return GoalOutcome(projected_expenses=tuple(updated), projections=projections)


def add_projected_expense(
    projected: Sequence[ProjectedExpense],
    person: str,
    criticality: str,
    subcategory: str,
    amount: float,
) -> Tuple[ProjectedExpense, ...]:
    """Return ``projected`` with a manually entered expense appended."""

    if canonical_criticality(criticality) is None:
        raise InvalidInputError(f"Unknown criticality: {criticality!r}")
    if not (subcategory or "").strip():
        raise InvalidInputError("Please enter a subcategory.")
    if not is_joint_account(person) and canonical_person(person) is None:
        raise InvalidInputError(f"Unknown person: {person!r}")
    new_entries = ProjectedExpense.create(
        person, canonical_criticality(criticality), subcategory, amount
    )
    return tuple(projected) + new_entries


def remove_projected_expenses(
    projected: Sequence[ProjectedExpense], indices: Iterable[int]
) -> Tuple[ProjectedExpense, ...]:
    drop = set(indices)
    for index in drop:
        if not 0 <= index < len(projected):
            raise InvalidInputError(f"No projected expense at position {index}")
    return tuple(pe for idx, pe in enumerate(projected) if idx not in drop)


def parse_required_amount(text: str | None, field: str = "amount") -> float:
    """Parse a user-typed monetary value, rejecting anything unusable."""

    cleaned = (text or "").replace("$", "").replace(",", "").strip()
    if not cleaned:
        raise InvalidInputError(f"Enter a value for {field}.")
    try:
        value = float(cleaned)
    except ValueError:
        raise InvalidInputError(f"Enter a valid number for {field}.") from None
    if not math.isfinite(value):
        raise InvalidInputError(f"Enter a valid number for {field}.")
    return value


def parse_required_days(text: str | None) -> int:
    cleaned = (text or "").strip()
    try:
        days = int(cleaned)
    except ValueError:
        raise InvalidInputError("Enter a whole number of days.") from None
    if days < 0:
        raise InvalidInputError("Days remaining cannot be negative.")
    return days
