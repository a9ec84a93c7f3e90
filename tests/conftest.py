import pytest

from swp_planner.data_model import ExpenseRecord, InvestmentRecord, LiabilityRecord
from swp_planner.engine.state import Scenario, ScenarioView


@pytest.fixture
def make_view():
    def _make(expenses=(), investments=(), liabilities=(), cash=0.0) -> ScenarioView:
        scenario = Scenario(
            id="test",
            name="Test",
            created_at="2025-01-01T00:00:00+00:00",
            expenses=list(expenses),
            investments=list(investments),
            liabilities=list(liabilities),
            cash=cash,
        )
        return ScenarioView(scenario)

    return _make


@pytest.fixture
def household_expense() -> ExpenseRecord:
    return ExpenseRecord(id="e1", name="Household", amount=20000.0, type="Monthly")


@pytest.fixture
def home_loan() -> LiabilityRecord:
    return LiabilityRecord(id="l1", name="Home loan", principal=500000.0, interest_rate=10.0, years=5)


@pytest.fixture
def monthly_sip() -> InvestmentRecord:
    return InvestmentRecord(id="i1", type="SIP", monthly_amount=1000.0, expected_return=12.0, years=1)
