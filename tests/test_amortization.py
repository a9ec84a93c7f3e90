import pytest

from swp_planner.data_model import LiabilityRecord
from swp_planner.engine.amortization import (
    active_emi,
    amortization_table,
    build_schedule,
    compute_emi,
    total_interest,
)


def test_reducing_balance_emi(home_loan):
    assert compute_emi(home_loan) == pytest.approx(10623.52, abs=0.01)


@pytest.mark.parametrize(
    "principal, rate, years",
    [(0.0, 10.0, 5), (500000.0, 0.0, 5), (500000.0, 10.0, 0), (-1000.0, 10.0, 5)],
)
def test_degenerate_liabilities_have_zero_emi(principal, rate, years):
    liability = LiabilityRecord(id="x", name="x", principal=principal, interest_rate=rate, years=years)

    assert compute_emi(liability) == 0.0
    assert total_interest(liability) == 0.0


def test_principal_components_repay_the_principal(home_loan):
    table = amortization_table(home_loan)

    assert len(table) == 60
    assert table["Principal"].sum() == pytest.approx(home_loan.principal, abs=1e-6)
    assert table["ClosingBalance"].iloc[-1] == pytest.approx(0.0, abs=1e-6)
    assert (table["EMI"] * len(table)).iloc[0] == pytest.approx(home_loan.principal + total_interest(home_loan))


def test_schedule_counts_down_remaining_term(home_loan):
    fresh, one_year_in, paid_off = (
        build_schedule([home_loan], 0)[0],
        build_schedule([home_loan], 12)[0],
        build_schedule([home_loan], 100)[0],
    )

    assert fresh.remaining_months == 60
    assert one_year_in.remaining_months == 48
    assert paid_off.remaining_months == 0
    assert active_emi([paid_off]) == 0.0


def test_schedule_never_goes_below_zero(home_loan):
    schedule = build_schedule([home_loan], 59)[0]

    schedule.step()
    schedule.step()

    assert schedule.remaining_months == 0
    assert not schedule.active


def test_each_build_allocates_new_schedules(home_loan):
    first = build_schedule([home_loan], 0)
    second = build_schedule([home_loan], 0)

    first[0].step()

    assert first[0] is not second[0]
    assert second[0].remaining_months == 60
