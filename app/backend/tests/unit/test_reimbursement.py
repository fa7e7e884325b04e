"""Unit tests for the reimbursement suggestion rule."""

from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

import pytest

from app.backend.src.services.reimbursement import BASE_SALARY, SALARY_PERCENTAGE, suggest


def test_low_salary_gets_the_full_floor() -> None:
    assert suggest(2000) == 2018.36


def test_high_salary_is_capped_at_ninety_percent() -> None:
    assert suggest(3000) == 2700.0


@pytest.mark.parametrize("salary", [0, -1, -2500.5, None])
def test_non_positive_salary_has_no_suggestion(salary: float | None) -> None:
    assert suggest(salary) == 0


@pytest.mark.parametrize("salary", [1.0, 500, 1412, 2242, 2243, 4999.99, 18000])
def test_suggestion_follows_floor_rule(salary: float) -> None:
    cap = salary * SALARY_PERCENTAGE
    expected = BASE_SALARY if cap <= BASE_SALARY else cap

    assert suggest(salary) == expected


def test_accepts_decimal_salaries() -> None:
    assert suggest(Decimal("3000.00")) == 2700.0
    assert suggest(Decimal("1500")) == BASE_SALARY
