from __future__ import annotations

from typing import Iterable

from ..data_model import ExpenseRecord


def base_monthly_expenses(expenses: Iterable[ExpenseRecord]) -> float:
    return sum(expense.monthly_amount() for expense in expenses)


def normalize_expenses(expenses: Iterable[ExpenseRecord], inflation_rate_pct: float, years_elapsed: float) -> float:
    """Monthly expense baseline inflated forward; past-dated plans are not deflated."""
    base = base_monthly_expenses(expenses)
    return base * (1 + inflation_rate_pct / 100) ** max(0.0, years_elapsed)
