from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from ..data_model import LiabilityRecord


@dataclass
class EmiSchedule:
    """Working state for one liability during a single simulation run."""

    emi: float
    remaining_months: int
    liability_id: str = ""

    @property
    def active(self) -> bool:
        return self.remaining_months > 0

    def step(self) -> None:
        if self.remaining_months > 0:
            self.remaining_months -= 1


def term_months(liability: LiabilityRecord) -> int:
    return max(0, int(round(liability.years * 12)))


def compute_emi(liability: LiabilityRecord) -> float:
    """Reducing-balance EMI; zero principal, rate or term gives 0."""
    principal = liability.principal
    rate = liability.interest_rate / 12 / 100
    months = term_months(liability)
    if principal <= 0 or rate <= 0 or months <= 0:
        return 0.0
    factor = (1 + rate) ** months
    return principal * rate * factor / (factor - 1)


def total_interest(liability: LiabilityRecord) -> float:
    emi = compute_emi(liability)
    if not emi:
        return 0.0
    return emi * term_months(liability) - liability.principal


def build_schedule(liabilities: Iterable[LiabilityRecord], months_elapsed: int) -> List[EmiSchedule]:
    """Fresh schedules for one run; callers must not share them across runs."""
    elapsed = max(0, months_elapsed)
    return [
        EmiSchedule(
            emi=compute_emi(item),
            remaining_months=max(0, term_months(item) - elapsed),
            liability_id=item.id,
        )
        for item in liabilities
    ]


def active_emi(schedules: Iterable[EmiSchedule]) -> float:
    return sum(schedule.emi for schedule in schedules if schedule.active)


def amortization_table(liability: LiabilityRecord) -> pd.DataFrame:
    """Month-by-month split of each EMI into interest and principal."""
    emi = compute_emi(liability)
    rate = liability.interest_rate / 12 / 100
    balance = liability.principal
    months = term_months(liability) if emi else 0
    records = []
    for month in range(1, months + 1):
        interest = balance * rate
        principal_part = emi - interest
        closing = balance - principal_part
        records.append(
            {
                "Month": month,
                "OpeningBalance": balance,
                "EMI": emi,
                "Interest": interest,
                "Principal": principal_part,
                "ClosingBalance": closing,
            }
        )
        balance = closing
    return pd.DataFrame(
        records,
        columns=["Month", "OpeningBalance", "EMI", "Interest", "Principal", "ClosingBalance"],
    )
