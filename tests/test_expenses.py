import pytest

from swp_planner.data_model import ExpenseRecord
from swp_planner.engine.expenses import base_monthly_expenses, normalize_expenses

EXPENSES = [
    ExpenseRecord(id="a", name="Groceries", amount=12000.0, type="Monthly"),
    ExpenseRecord(id="b", name="Insurance", amount=24000.0, type="Yearly"),
]


def test_yearly_expenses_are_spread_over_twelve_months():
    assert base_monthly_expenses(EXPENSES) == pytest.approx(14000.0)


def test_expenses_inflate_per_elapsed_year():
    assert normalize_expenses(EXPENSES, 6.0, 2) == pytest.approx(14000.0 * 1.06**2)


def test_past_dated_plans_are_not_deflated():
    assert normalize_expenses(EXPENSES, 6.0, -3) == pytest.approx(14000.0)


def test_no_expenses_normalize_to_zero():
    assert normalize_expenses([], 6.0, 5) == 0.0


def test_negative_amounts_parse_as_zero():
    expense = ExpenseRecord.from_row({"name": "Refund", "amount": -500, "type": "Monthly"})

    assert expense.amount == 0.0
