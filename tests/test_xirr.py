import math
from datetime import date

import pytest

from swp_planner.data_model import CashFlow
from swp_planner.engine.xirr import _bisection, xirr, xirr_percent, xnpv


@pytest.mark.parametrize("rate", [0.05, 0.1, 0.25, -0.1])
def test_recovers_rate_of_single_year_investment(rate):
    flows = [
        CashFlow(amount=-100000.0, when=date(2023, 1, 1)),
        CashFlow(amount=100000.0 * (1 + rate), when=date(2024, 1, 1)),
    ]

    assert xirr(flows) == pytest.approx(rate, abs=1e-4)


def test_irregular_flows_zero_the_xnpv():
    flows = [
        CashFlow(amount=-1000.0, when=date(2016, 1, 15)),
        CashFlow(amount=-2500.0, when=date(2016, 2, 8)),
        CashFlow(amount=-1000.0, when=date(2016, 4, 17)),
        CashFlow(amount=5050.0, when=date(2016, 8, 24)),
    ]

    rate = xirr(flows)

    assert rate > 0
    assert abs(xnpv(rate, flows)) < 1e-3


def test_input_order_does_not_matter():
    flows = [
        CashFlow(amount=5050.0, when=date(2016, 8, 24)),
        CashFlow(amount=-1000.0, when=date(2016, 1, 15)),
        CashFlow(amount=-2500.0, when=date(2016, 2, 8)),
    ]

    assert xirr(flows) == pytest.approx(xirr(sorted(flows, key=lambda flow: flow.when)))


def test_percent_form_for_display():
    flows = [
        CashFlow(amount=-1000.0, when=date(2020, 1, 1)),
        CashFlow(amount=1100.0, when=date(2020, 12, 31)),
    ]

    assert xirr_percent(flows) == pytest.approx(xirr(flows) * 100)


@pytest.mark.parametrize(
    "flows",
    [
        [],
        [CashFlow(amount=-1000.0, when=date(2020, 1, 1))],
        [CashFlow(amount=-1000.0, when=date(2020, 1, 1)), CashFlow(amount=-500.0, when=date(2021, 1, 1))],
        [CashFlow(amount=1000.0, when=date(2020, 1, 1)), CashFlow(amount=500.0, when=date(2021, 1, 1))],
        [CashFlow(amount=-1000.0, when=date(2020, 1, 1)), CashFlow(amount=1500.0, when=date(2020, 1, 1))],
    ],
)
def test_degenerate_flows_report_nan(flows):
    assert math.isnan(xirr(flows))


def test_bisection_brackets_flows_spanning_decades():
    terms = [(-1000.0, 0.0), (1000.0 * 1.05**60, 60.0)]

    assert _bisection(terms) == pytest.approx(0.05, abs=1e-6)


def test_bisection_widens_toward_total_loss():
    terms = [(-1000.0, 0.0), (1000.0 * 0.005**2, 2.0)]

    assert _bisection(terms) == pytest.approx(-0.995, abs=1e-6)
