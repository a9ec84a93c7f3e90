from __future__ import annotations

import math
from typing import Iterable

from ..data_model import InvestmentRecord


def _sip_value(monthly_amount: float, annual_return_pct: float, months: float) -> float:
    rate = annual_return_pct / 12 / 100
    if not monthly_amount or not rate or months <= 0:
        return 0.0
    # annuity-due: each contribution compounds for the month it is paid in
    return monthly_amount * (((1 + rate) ** months - 1) / rate) * (1 + rate)


def _lumpsum_value(amount: float, annual_return_pct: float, years: float) -> float:
    if not amount or not annual_return_pct or years <= 0:
        return 0.0
    return amount * (1 + annual_return_pct / 100) ** years


def project_value(investment: InvestmentRecord, elapsed_months: int, cap_at_declared_term: bool = True) -> float:
    """Future value of one investment after ``elapsed_months``.

    With ``cap_at_declared_term`` a SIP stops taking contributions once its own
    ``years`` run out; without it contributions run open-ended to the target
    month. Lumpsums always compound for the full ``elapsed_months``.
    """
    months = max(0, elapsed_months)
    if investment.type == "SIP":
        if cap_at_declared_term:
            months = min(months, investment.years * 12)
        return _sip_value(investment.monthly_amount, investment.expected_return, months)
    return _lumpsum_value(investment.amount, investment.expected_return, months / 12)


def maturity_value(investment: InvestmentRecord) -> float:
    return project_value(investment, math.ceil(investment.years * 12), cap_at_declared_term=True)


def project_corpus(
    investments: Iterable[InvestmentRecord],
    elapsed_months: int,
    cap_at_declared_term: bool = True,
) -> float:
    return sum(project_value(inv, elapsed_months, cap_at_declared_term) for inv in investments)
