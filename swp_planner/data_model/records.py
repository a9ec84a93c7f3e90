from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Literal, Mapping

from ..errors import InvalidInputError
from .base import ColumnDefinition, TableModel

INCOME_TYPES = ["Monthly", "Yearly", "OneTime"]
EXPENSE_TYPES = ["Monthly", "Yearly"]
INVESTMENT_TYPES = ["SIP", "Lumpsum"]

IncomeType = Literal["Monthly", "Yearly", "OneTime"]
ExpenseType = Literal["Monthly", "Yearly"]
InvestmentType = Literal["SIP", "Lumpsum"]


def new_record_id() -> str:
    return uuid.uuid4().hex[:12]


def _number(row: Mapping[str, Any], *keys: str) -> float:
    for key in keys:
        raw = row.get(key)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return 0.0
        return value if math.isfinite(value) else 0.0
    return 0.0


def _non_negative(row: Mapping[str, Any], *keys: str) -> float:
    return max(0.0, _number(row, *keys))


def parse_date(value: Any, field_name: str = "date") -> date | None:
    """Accept a date or an ISO ``YYYY-MM-DD`` / ``YYYY-MM`` string; blank means None."""
    if value is None or isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        if len(text) == 7:
            year, month = map(int, text.split("-"))
            return date(year, month, 1)
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise InvalidInputError(f"Malformed {field_name}: {text!r}") from exc


def _record_id(row: Mapping[str, Any]) -> str:
    raw = row.get("id")
    return str(raw) if raw not in (None, "") else new_record_id()


@dataclass(frozen=True)
class IncomeRecord:
    id: str
    name: str
    amount: float
    type: IncomeType = "Monthly"
    retirement_age: int | None = None
    stop_date: date | None = None

    def monthly_amount(self) -> float:
        if self.type == "Monthly":
            return self.amount
        if self.type == "Yearly":
            return self.amount / 12.0
        return 0.0

    def is_active(self, on: date) -> bool:
        return self.stop_date is None or on < self.stop_date

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "IncomeRecord":
        income_type = str(row.get("type") or "Monthly")
        if income_type not in INCOME_TYPES:
            raise InvalidInputError(f"Unknown income type: {income_type!r}")
        age = row.get("retirementAge")
        return cls(
            id=_record_id(row),
            name=str(row.get("name", "")).strip(),
            amount=_non_negative(row, "amount"),
            type=income_type,
            retirement_age=int(_number(row, "retirementAge")) if age not in (None, "") else None,
            stop_date=parse_date(row.get("stopDate"), "stopDate"),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "type": self.type,
            "retirementAge": self.retirement_age,
            "stopDate": self.stop_date.isoformat() if self.stop_date else None,
        }


@dataclass(frozen=True)
class ExpenseRecord:
    id: str
    name: str
    amount: float
    type: ExpenseType = "Monthly"

    def monthly_amount(self) -> float:
        return self.amount if self.type == "Monthly" else self.amount / 12.0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ExpenseRecord":
        expense_type = str(row.get("type") or "Monthly")
        if expense_type not in EXPENSE_TYPES:
            raise InvalidInputError(f"Unknown expense type: {expense_type!r}")
        return cls(
            id=_record_id(row),
            name=str(row.get("name", "")).strip(),
            amount=_non_negative(row, "amount"),
            type=expense_type,
        )

    def to_row(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "amount": self.amount, "type": self.type}


@dataclass(frozen=True)
class InvestmentRecord:
    """SIP uses ``monthly_amount``; Lumpsum uses ``amount``. Bad numerics read as 0."""

    id: str
    type: InvestmentType
    monthly_amount: float = 0.0
    amount: float = 0.0
    expected_return: float = 0.0
    years: float = 0.0
    name: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "InvestmentRecord":
        investment_type = str(row.get("type") or "SIP")
        if investment_type not in INVESTMENT_TYPES:
            raise InvalidInputError(f"Unknown investment type: {investment_type!r}")
        return cls(
            id=_record_id(row),
            type=investment_type,
            monthly_amount=_non_negative(row, "monthlyAmount"),
            amount=_non_negative(row, "amount"),
            expected_return=_non_negative(row, "expectedReturn"),
            years=_non_negative(row, "years"),
            name=str(row.get("name", "") or "").strip(),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "monthlyAmount": self.monthly_amount,
            "amount": self.amount,
            "expectedReturn": self.expected_return,
            "years": self.years,
        }


@dataclass(frozen=True)
class LiabilityRecord:
    id: str
    name: str
    principal: float
    interest_rate: float
    years: float

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LiabilityRecord":
        return cls(
            id=_record_id(row),
            name=str(row.get("name", "")).strip(),
            principal=_number(row, "principal"),
            interest_rate=_number(row, "interestRate"),
            years=_number(row, "years"),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "principal": self.principal,
            "interestRate": self.interest_rate,
            "years": self.years,
        }


class IncomeTableModel(TableModel):
    def __init__(self) -> None:
        columns = [
            ColumnDefinition("name", "Name"),
            ColumnDefinition("amount", "Amount", kind="number", default=0.0, min_value=0.0, step=1000.0, format="%.2f"),
            ColumnDefinition("type", "Type", kind="select", default="Monthly", options=INCOME_TYPES),
            ColumnDefinition("retirementAge", "Retirement Age", kind="number", default=None, min_value=0.0, step=1.0),
            ColumnDefinition("stopDate", "Stop Date", kind="date", default="", help="Income stops from this date"),
        ]
        super().__init__("incomes", columns)


class ExpenseTableModel(TableModel):
    def __init__(self) -> None:
        columns = [
            ColumnDefinition("name", "Name"),
            ColumnDefinition("amount", "Amount", kind="number", default=0.0, min_value=0.0, step=500.0, format="%.2f"),
            ColumnDefinition("type", "Type", kind="select", default="Monthly", options=EXPENSE_TYPES),
        ]
        default_rows = [
            {"name": "Household", "amount": 20000.0, "type": "Monthly"},
            {"name": "Insurance", "amount": 30000.0, "type": "Yearly"},
        ]
        super().__init__("expenses", columns, default_rows)


class InvestmentTableModel(TableModel):
    def __init__(self) -> None:
        columns = [
            ColumnDefinition("type", "Type", kind="select", default="SIP", options=INVESTMENT_TYPES),
            ColumnDefinition("monthlyAmount", "Monthly Amount (SIP)", kind="number", default=0.0, min_value=0.0, step=500.0),
            ColumnDefinition("amount", "Amount (Lumpsum)", kind="number", default=0.0, min_value=0.0, step=10000.0),
            ColumnDefinition("expectedReturn", "Expected Return (%)", kind="number", default=12.0, min_value=0.0, step=0.5),
            ColumnDefinition("years", "Years", kind="number", default=10.0, min_value=0.0, step=1.0),
        ]
        super().__init__("investments", columns)


class LiabilityTableModel(TableModel):
    def __init__(self) -> None:
        columns = [
            ColumnDefinition("name", "Name"),
            ColumnDefinition("principal", "Principal", kind="number", default=0.0, min_value=0.0, step=10000.0),
            ColumnDefinition("interestRate", "Interest Rate (%)", kind="number", default=0.0, min_value=0.0, step=0.25),
            ColumnDefinition("years", "Years", kind="number", default=0.0, min_value=0.0, step=1.0),
        ]
        super().__init__("liabilities", columns)
