from .base import ColumnDefinition, TableModel
from .plan import CashFlow, MonthlySnapshot, SWPConfig, SWPPlanResult, YearlySnapshot
from .records import (
    EXPENSE_TYPES,
    INCOME_TYPES,
    INVESTMENT_TYPES,
    ExpenseRecord,
    ExpenseTableModel,
    IncomeRecord,
    IncomeTableModel,
    InvestmentRecord,
    InvestmentTableModel,
    LiabilityRecord,
    LiabilityTableModel,
    new_record_id,
    parse_date,
)

__all__ = [
    "EXPENSE_TYPES",
    "INCOME_TYPES",
    "INVESTMENT_TYPES",
    "CashFlow",
    "ColumnDefinition",
    "ExpenseRecord",
    "ExpenseTableModel",
    "IncomeRecord",
    "IncomeTableModel",
    "InvestmentRecord",
    "InvestmentTableModel",
    "LiabilityRecord",
    "LiabilityTableModel",
    "MonthlySnapshot",
    "SWPConfig",
    "SWPPlanResult",
    "TableModel",
    "YearlySnapshot",
    "new_record_id",
    "parse_date",
]
