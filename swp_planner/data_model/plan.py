# data_model/plan.py
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, List, Literal, Mapping

from ..config import COMPOUNDING_MODES, DEFAULT_MAX_SWP_MONTHS, DEFAULT_MAX_TOTAL_MONTHS, Settings
from ..errors import InvalidInputError
from .records import parse_date

CompoundingMode = Literal["simple", "geometric"]

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _float_field(payload: Mapping[str, Any], default: float, *keys: str) -> float:
    for key in keys:
        raw = payload.get(key)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        try:
            value = float(raw)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"{key} must be a number, got {raw!r}") from exc
        if not math.isfinite(value):
            raise InvalidInputError(f"{key} must be finite")
        return value
    return default


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass(frozen=True)
class SWPConfig:
    start_date: date
    inflation_rate_pct: float = 6.0
    annual_return_rate_pct: float = 8.0
    corpus_override: float | None = None
    as_of: date | None = None
    compounding_mode: CompoundingMode = "simple"
    cap_contributions_at_declared_term: bool = True
    max_swp_months: int = DEFAULT_MAX_SWP_MONTHS
    max_total_months: int = DEFAULT_MAX_TOTAL_MONTHS

    def with_as_of(self, as_of: date) -> "SWPConfig":
        return replace(self, as_of=as_of)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], settings: Settings | None = None) -> "SWPConfig":
        settings = settings or Settings()
        start = parse_date(payload.get("startDate"), "startDate")
        if start is None:
            raise InvalidInputError("startDate is required.")
        mode = str(payload.get("compoundingMode") or settings.compounding_mode).lower()
        if mode not in COMPOUNDING_MODES:
            raise InvalidInputError(f"compoundingMode must be one of {COMPOUNDING_MODES}, got {mode!r}")
        corpus = _float_field(payload, 0.0, "corpusAmount", "corpusOverride")
        cap = payload.get("capContributionsAtDeclaredTerm")
        return cls(
            start_date=start,
            inflation_rate_pct=_float_field(payload, 6.0, "inflationRate", "inflationRatePct"),
            annual_return_rate_pct=_float_field(payload, 8.0, "annualReturnRate", "annualReturnRatePct"),
            corpus_override=corpus if corpus > 0 else None,
            as_of=parse_date(payload.get("asOf"), "asOf"),
            compounding_mode=mode,
            cap_contributions_at_declared_term=settings.cap_contributions_at_declared_term if cap is None else _flag(cap),
            max_swp_months=settings.max_swp_months,
            max_total_months=settings.max_total_months,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "startDate": self.start_date.isoformat(),
            "inflationRate": self.inflation_rate_pct,
            "annualReturnRate": self.annual_return_rate_pct,
            "corpusAmount": self.corpus_override,
            "asOf": self.as_of.isoformat() if self.as_of else None,
            "compoundingMode": self.compounding_mode,
            "capContributionsAtDeclaredTerm": self.cap_contributions_at_declared_term,
        }


@dataclass(frozen=True)
class MonthlySnapshot:
    period: date
    corpus: float
    growth: float
    total_expenses: float
    total_emi: float
    withdrawal: float
    net: float

    @property
    def balance(self) -> float:
        """Balance carried into the next month."""
        return self.corpus + self.growth - self.withdrawal

    @property
    def label(self) -> str:
        return f"{MONTH_NAMES[self.period.month - 1]} {self.period.year}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period.strftime("%Y-%m"),
            "label": self.label,
            "corpus": self.corpus,
            "growth": self.growth,
            "totalExpenses": self.total_expenses,
            "totalEMI": self.total_emi,
            "withdrawal": self.withdrawal,
            "net": self.net,
        }


@dataclass(frozen=True)
class YearlySnapshot:
    period: str
    corpus: float
    growth: float
    total_expenses: float
    total_emi: float
    withdrawal: float
    net: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "corpus": self.corpus,
            "growth": self.growth,
            "totalExpenses": self.total_expenses,
            "totalEMI": self.total_emi,
            "withdrawal": self.withdrawal,
            "net": self.net,
        }


@dataclass
class SWPPlanResult:
    sustainability_years: float
    total_investment_value: float
    total_monthly_outflow: float
    monthly_series: List[MonthlySnapshot] = field(default_factory=list)
    yearly_series: List[YearlySnapshot] = field(default_factory=list)
    input_snapshot: dict[str, Any] = field(default_factory=dict)
    depleted: bool = False
    horizon_exceeded: bool = False

    @property
    def summary(self) -> str:
        if self.horizon_exceeded:
            return (
                f"Corpus lasts beyond the modeled horizon of {self.sustainability_years} years from SWP start."
            )
        return f"Corpus will last for {self.sustainability_years} years from SWP start."

    def to_dict(self) -> dict[str, Any]:
        return {
            "sustainabilityYears": self.sustainability_years,
            "totalInvestmentValue": self.total_investment_value,
            "totalMonthlyOutflow": self.total_monthly_outflow,
            "depleted": self.depleted,
            "horizonExceeded": self.horizon_exceeded,
            "summary": self.summary,
            "inputSnapshot": self.input_snapshot,
            "monthlySeries": [snap.to_dict() for snap in self.monthly_series],
            "yearlySeries": [snap.to_dict() for snap in self.yearly_series],
        }


@dataclass(frozen=True)
class CashFlow:
    """Signed amount: negative = money invested, positive = money returned."""

    amount: float
    when: date

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CashFlow":
        when = parse_date(row.get("when") or row.get("date"), "when")
        if when is None:
            raise InvalidInputError("Cash flow date is required.")
        try:
            amount = float(row.get("amount"))
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Cash flow amount must be a number, got {row.get('amount')!r}") from exc
        return cls(amount=amount, when=when)
