"""Reimbursement suggestion rule."""

from __future__ import annotations

from decimal import Decimal

BASE_SALARY = 2018.36
SALARY_PERCENTAGE = 0.9


def suggest(salary: float | Decimal | None) -> float:
    """Return the suggested reimbursement for a gross monthly salary.

    Employees whose 90% cap falls at or below the floor are reimbursed the full
    floor; everyone else is capped at 90% of salary. Missing or non-positive
    salaries yield no suggestion.
    """

    value = float(salary or 0)
    if value <= 0:
        return 0.0

    max_reimbursable = value * SALARY_PERCENTAGE
    if max_reimbursable <= BASE_SALARY:
        return BASE_SALARY
    return max_reimbursable


__all__ = ["BASE_SALARY", "SALARY_PERCENTAGE", "suggest"]
