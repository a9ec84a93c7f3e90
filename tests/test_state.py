from datetime import date

import pytest

from swp_planner.data_model import SWPConfig
from swp_planner.engine.amortization import compute_emi
from swp_planner.engine.simulator import run_swp_plan
from swp_planner.engine.state import BASELINE_ID, ScenarioState, summarize
from swp_planner.errors import InvalidInputError, RecordNotFoundError, ScenarioNotFoundError

CONFIG = SWPConfig(start_date=date(2025, 1, 1), as_of=date(2025, 1, 1), corpus_override=1_000_000.0)


def _state_with_plan() -> ScenarioState:
    state = ScenarioState(storage_path=None)
    state.add_record("expenses", {"name": "Household", "amount": 20000, "type": "Monthly"})
    state.save_plan(run_swp_plan(state.view(), CONFIG))
    return state


def test_baseline_scenario_always_exists():
    state = ScenarioState(storage_path=None)

    assert state.active_id == BASELINE_ID
    assert state.list_names() == ["Baseline"]
    with pytest.raises(InvalidInputError):
        state.delete_scenario(BASELINE_ID)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda s: s.add_record("liabilities", {"name": "Car", "principal": 1, "interestRate": 9, "years": 1}),
        lambda s: s.update_record("expenses", s.view().expenses()[0].id, {"name": "Household", "amount": 1}),
        lambda s: s.delete_record("expenses", s.view().expenses()[0].id),
        lambda s: s.set_cash(5000),
    ],
)
def test_any_record_change_clears_the_plan(mutate):
    state = _state_with_plan()
    assert state.get_plan() is not None

    mutate(state)

    assert state.get_plan() is None


def test_view_is_a_snapshot():
    state = ScenarioState(storage_path=None)
    state.add_record("expenses", {"name": "Rent", "amount": 15000})
    view = state.view()

    state.add_record("expenses", {"name": "Food", "amount": 8000})

    assert isinstance(view.expenses(), tuple)
    assert [item.name for item in view.expenses()] == ["Rent"]
    assert len(state.view().expenses()) == 2


def test_new_scenario_copies_active_records_without_plan():
    state = _state_with_plan()

    scenario = state.create_scenario("Early retirement")

    assert state.active_id == scenario.id
    assert [item.name for item in scenario.expenses] == ["Household"]
    assert scenario.swp_plan is None
    assert state.get_plan(BASELINE_ID) is not None


def test_deleting_active_scenario_falls_back_to_baseline():
    state = ScenarioState(storage_path=None)
    scenario = state.create_scenario("What if")

    state.delete_scenario(scenario.id)

    assert state.active_id == BASELINE_ID
    with pytest.raises(ScenarioNotFoundError):
        state.get(scenario.id)


def test_missing_records_and_unknown_kinds():
    state = ScenarioState(storage_path=None)

    with pytest.raises(RecordNotFoundError):
        state.delete_record("incomes", "nope")
    with pytest.raises(RecordNotFoundError):
        state.update_record("investments", "nope", {"type": "SIP"})
    with pytest.raises(InvalidInputError):
        state.add_record("pets", {"name": "Rex"})


def test_duplicate_record_ids_are_rejected():
    state = ScenarioState(storage_path=None)
    state.add_record("incomes", {"id": "salary", "name": "Salary", "amount": 100000})

    with pytest.raises(InvalidInputError):
        state.add_record("incomes", {"id": "salary", "name": "Salary again", "amount": 1})


def test_state_round_trips_through_storage(tmp_path):
    path = str(tmp_path / "scenarios.json")
    state = ScenarioState(storage_path=path)
    state.add_record("investments", {"type": "Lumpsum", "amount": 100000, "expectedReturn": 10, "years": 5})
    state.add_record("incomes", {"name": "Pension", "amount": 30000, "type": "Monthly", "stopDate": "2040-06-01"})
    other = state.create_scenario("Copy")
    state.rename_scenario(other.id, "Renamed")

    reloaded = ScenarioState(storage_path=path)

    assert reloaded.active_id == other.id
    assert reloaded.get(other.id).name == "Renamed"
    assert reloaded.view(BASELINE_ID).investments() == state.view(BASELINE_ID).investments()
    assert reloaded.view(BASELINE_ID).incomes()[0].stop_date == date(2040, 6, 1)


def test_summary_totals():
    state = ScenarioState(storage_path=None)
    state.add_record("incomes", {"name": "Salary", "amount": 120000, "type": "Yearly"})
    state.add_record("expenses", {"name": "Insurance", "amount": 24000, "type": "Yearly"})
    state.add_record("investments", {"type": "SIP", "monthlyAmount": 5000, "expectedReturn": 12, "years": 10})
    state.add_record("investments", {"type": "Lumpsum", "amount": 200000, "expectedReturn": 8, "years": 5})
    liability = state.add_record("liabilities", {"name": "Home", "principal": 500000, "interestRate": 10, "years": 5})

    summary = summarize(state.view())

    assert summary["monthlyIncome"] == pytest.approx(10000.0)
    assert summary["monthlyExpenses"] == pytest.approx(2000.0)
    assert summary["sipMonthly"] == 5000.0
    assert summary["lumpsumTotal"] == 200000.0
    assert summary["liabilityPrincipal"] == 500000.0
    assert summary["totalEMI"] == pytest.approx(compute_emi(liability))


def test_summary_leaves_out_stopped_incomes():
    state = ScenarioState(storage_path=None)
    state.add_record("incomes", {"name": "Salary", "amount": 90000, "stopDate": "2030-01-01"})
    state.add_record("incomes", {"name": "Rent", "amount": 15000})

    before = summarize(state.view(), on=date(2029, 12, 1))
    after = summarize(state.view(), on=date(2030, 1, 1))

    assert before["monthlyIncome"] == pytest.approx(105000.0)
    assert after["monthlyIncome"] == pytest.approx(15000.0)


@pytest.mark.parametrize("amount", [float("inf"), float("-inf"), float("nan"), "inf"])
def test_cash_must_be_finite(amount):
    state = ScenarioState(storage_path=None)

    with pytest.raises(InvalidInputError):
        state.set_cash(amount)
    assert state.view().cash() == 0.0
