"""Month-by-month Systematic Withdrawal Plan simulation.

A run has two phases. GROWTH compounds the opening balance until the plan's
start month with nothing withdrawn. WITHDRAWAL then pays the month's expenses
plus every EMI still running out of the balance, emitting one
``MonthlySnapshot`` per month until the balance is gone or a month cap is hit.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import replace
from datetime import date
from typing import Callable, Iterator, List, Sequence

from ..config import COMPOUNDING_MODES, DEFAULT_MAX_SWP_MONTHS, DEFAULT_MAX_TOTAL_MONTHS
from ..data_model import MonthlySnapshot, SWPConfig, SWPPlanResult
from ..errors import InvalidInputError, SimulationCancelled
from .aggregate import aggregate_yearly
from .amortization import EmiSchedule, active_emi, build_schedule
from .expenses import normalize_expenses
from .periods import add_months, month_diff, month_start
from .projector import project_corpus

logger = logging.getLogger(__name__)


def monthly_rate(annual_rate_pct: float, mode: str = "simple") -> float:
    """Monthly return for ``annual_rate_pct``; the monthly factor ``1 + rate`` must stay positive."""
    if not isinstance(annual_rate_pct, (int, float)) or not math.isfinite(annual_rate_pct):
        raise InvalidInputError(f"Annual return rate must be a finite number, got {annual_rate_pct!r}")
    if mode == "simple":
        rate = annual_rate_pct / 12 / 100
    elif mode == "geometric":
        if annual_rate_pct <= -100:
            raise InvalidInputError(f"Annual return rate must be above -100% for geometric compounding, got {annual_rate_pct}")
        rate = (1 + annual_rate_pct / 100) ** (1 / 12) - 1
    else:
        raise InvalidInputError(f"compounding mode must be one of {COMPOUNDING_MODES}, got {mode!r}")
    if rate <= -1:
        raise InvalidInputError(f"Annual return rate {annual_rate_pct}% would wipe out the corpus every month.")
    return rate


def _check_cancel(should_cancel: Callable[[], bool] | None, deadline: float | None) -> None:
    if should_cancel is not None and should_cancel():
        raise SimulationCancelled("Simulation cancelled by caller.")
    if deadline is not None and time.monotonic() >= deadline:
        raise SimulationCancelled("Simulation deadline exceeded.")


def iter_swp(
    opening_balance: float,
    start: date,
    *,
    annual_return_rate_pct: float,
    inflation_rate_pct: float,
    monthly_expenses: float,
    emi_schedules: Sequence[EmiSchedule] = (),
    growth_months: int = 0,
    compounding_mode: str = "simple",
    max_swp_months: int = DEFAULT_MAX_SWP_MONTHS,
    max_total_months: int = DEFAULT_MAX_TOTAL_MONTHS,
    should_cancel: Callable[[], bool] | None = None,
    deadline: float | None = None,
) -> Iterator[MonthlySnapshot]:
    """Validate inputs, then return a lazy iterator of withdrawal months.

    ``emi_schedules`` are copied, so calling this twice with the same
    arguments replays the same run.
    """
    if opening_balance is None or not opening_balance > 0 or not math.isfinite(opening_balance):
        raise InvalidInputError(f"Opening corpus must be positive, got {opening_balance!r}")
    if max_swp_months <= 0 or max_total_months <= 0:
        raise InvalidInputError("Month caps must be positive.")
    if growth_months < 0:
        raise InvalidInputError("growth_months cannot be negative.")
    if growth_months >= max_total_months:
        raise InvalidInputError(
            f"Start date is {growth_months} months away, beyond the {max_total_months}-month horizon."
        )
    rate = monthly_rate(annual_return_rate_pct, compounding_mode)
    schedules = [replace(schedule) for schedule in emi_schedules]
    return _run(
        opening_balance,
        month_start(start),
        rate,
        inflation_rate_pct,
        monthly_expenses,
        schedules,
        growth_months,
        max_swp_months,
        max_total_months,
        should_cancel,
        deadline,
    )


def _run(
    balance: float,
    period: date,
    rate: float,
    inflation_rate_pct: float,
    expenses: float,
    schedules: List[EmiSchedule],
    growth_months: int,
    max_swp_months: int,
    max_total_months: int,
    should_cancel: Callable[[], bool] | None,
    deadline: float | None,
) -> Iterator[MonthlySnapshot]:
    for _ in range(growth_months):
        _check_cancel(should_cancel, deadline)
        balance *= 1 + rate
    if not balance > 0:
        raise InvalidInputError("Corpus fell to zero before the start month at this return rate.")

    total_months = growth_months
    swp_months = 0
    while balance > 0 and swp_months < max_swp_months and total_months < max_total_months:
        _check_cancel(should_cancel, deadline)
        emi = active_emi(schedules)
        withdrawal = expenses + emi
        growth = balance * rate
        yield MonthlySnapshot(
            period=period,
            corpus=balance,
            growth=growth,
            total_expenses=expenses,
            total_emi=emi,
            withdrawal=withdrawal,
            net=growth - withdrawal,
        )
        balance = balance + growth - withdrawal
        for schedule in schedules:
            schedule.step()
        # inflation steps once per completed calendar year
        if period.month == 12:
            expenses *= 1 + inflation_rate_pct / 100
        period = add_months(period, 1)
        swp_months += 1
        total_months += 1


def _validate_records(view) -> None:
    for liability in view.liabilities():
        if liability.years <= 0:
            raise InvalidInputError(f"Liability {liability.name or liability.id!r} needs a term of more than 0 years.")
        if liability.principal < 0 or liability.interest_rate < 0:
            raise InvalidInputError(f"Liability {liability.name or liability.id!r} has a negative principal or rate.")
    for expense in view.expenses():
        if expense.amount < 0:
            raise InvalidInputError(f"Expense {expense.name or expense.id!r} has a negative amount.")


def run_swp_plan(
    view,
    config: SWPConfig,
    should_cancel: Callable[[], bool] | None = None,
    deadline: float | None = None,
) -> SWPPlanResult:
    """Simulate one scenario end to end.

    ``view`` is any object exposing the read-only getters of
    :class:`swp_planner.engine.state.ScenarioView`.
    """
    as_of = config.as_of or date.today()
    _validate_records(view)

    months_to_start = month_diff(as_of, config.start_date)
    if config.corpus_override and config.corpus_override > 0:
        opening = config.corpus_override
        growth_months = months_to_start
        source = "override"
    else:
        opening = (
            project_corpus(view.investments(), months_to_start, config.cap_contributions_at_declared_term)
            + view.cash()
        )
        growth_months = 0
        source = "projection"
    if not math.isfinite(opening):
        raise InvalidInputError(f"Opening corpus must be a finite amount, got {opening!r}")
    if not opening > 0:
        raise InvalidInputError(
            "Opening corpus must be positive: enter a corpus amount or add investments that grow before the start date."
        )

    years_to_start = max(0, config.start_date.year - as_of.year)
    expenses = normalize_expenses(view.expenses(), config.inflation_rate_pct, years_to_start)
    schedules = build_schedule(view.liabilities(), months_to_start)

    logger.info(
        "SWP run: corpus=%.2f (%s) start=%s return=%.2f%% inflation=%.2f%% mode=%s",
        opening,
        source,
        config.start_date.isoformat(),
        config.annual_return_rate_pct,
        config.inflation_rate_pct,
        config.compounding_mode,
    )
    series = list(
        iter_swp(
            opening,
            config.start_date,
            annual_return_rate_pct=config.annual_return_rate_pct,
            inflation_rate_pct=config.inflation_rate_pct,
            monthly_expenses=expenses,
            emi_schedules=schedules,
            growth_months=growth_months,
            compounding_mode=config.compounding_mode,
            max_swp_months=config.max_swp_months,
            max_total_months=config.max_total_months,
            should_cancel=should_cancel,
            deadline=deadline,
        )
    )

    depleted = bool(series) and series[-1].balance <= 0
    capped = len(series) >= config.max_swp_months or growth_months + len(series) >= config.max_total_months
    result = SWPPlanResult(
        sustainability_years=round(len(series) / 12, 1),
        total_investment_value=opening,
        total_monthly_outflow=series[0].withdrawal if series else 0.0,
        monthly_series=series,
        yearly_series=aggregate_yearly(series),
        input_snapshot={
            **config.with_as_of(as_of).to_dict(),
            "corpusSource": source,
            "expenses": len(view.expenses()),
            "liabilities": len(view.liabilities()),
            "investments": len(view.investments()),
        },
        depleted=depleted,
        horizon_exceeded=capped and not depleted,
    )
    logger.info(
        "SWP run finished: %d months, %s",
        len(series),
        "depleted" if depleted else "horizon reached" if capped else "stopped",
    )
    return result
