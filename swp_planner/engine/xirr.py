"""Annualized internal rate of return for irregularly dated cash flows.

Failures (single-sign flows, one date, no convergence) come back as
``math.nan``; the solver never raises on numeric trouble.
"""
from __future__ import annotations

import logging
import math
from typing import Sequence

from ..data_model import CashFlow

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.0
TOLERANCE = 1e-7
MAX_NEWTON_ITERATIONS = 100
MAX_BISECTION_ITERATIONS = 200
MIN_RATE = -0.999999
BRACKET_LOW = -0.99


def _year_fractions(flows: Sequence[CashFlow]) -> list[tuple[float, float]]:
    origin = min(flow.when for flow in flows)
    return [(flow.amount, (flow.when - origin).days / DAYS_PER_YEAR) for flow in flows]


def xnpv(rate: float, flows: Sequence[CashFlow]) -> float:
    if rate <= -1:
        return math.nan
    return _npv(rate, _year_fractions(flows))


def _xnpv_derivative(rate: float, terms: list[tuple[float, float]]) -> float:
    return sum(-years * amount / (1 + rate) ** (years + 1) for amount, years in terms)


def _npv(rate: float, terms: list[tuple[float, float]]) -> float:
    return sum(amount / (1 + rate) ** years for amount, years in terms)


def _newton(terms: list[tuple[float, float]], guess: float) -> float | None:
    rate = guess
    for _ in range(MAX_NEWTON_ITERATIONS):
        try:
            value = _npv(rate, terms)
            derivative = _xnpv_derivative(rate, terms)
        except (OverflowError, ZeroDivisionError):
            return None
        if abs(derivative) < 1e-12:
            return None
        next_rate = rate - value / derivative
        if not math.isfinite(next_rate) or next_rate <= MIN_RATE:
            return None
        if abs(next_rate - rate) < TOLERANCE:
            return next_rate
        rate = next_rate
    return None


def _bracket(terms: list[tuple[float, float]]) -> tuple[float, float, float, float] | None:
    """Find ``low < high`` with opposite-signed NPVs, widening upward first, then toward -100%."""
    low, high = BRACKET_LOW, 1.0
    try:
        f_low = _npv(low, terms)
        f_high = _npv(high, terms)
    except (OverflowError, ZeroDivisionError):
        return None
    while f_low * f_high > 0 and high < 1e6:
        try:
            f_next = _npv(high * 2, terms)
        except (OverflowError, ZeroDivisionError):
            break
        high, f_high = high * 2, f_next
    # approach -100% by tenths of the remaining distance
    while f_low * f_high > 0 and low > MIN_RATE:
        candidate = -1 + (1 + low) / 10
        try:
            f_next = _npv(candidate, terms)
        except (OverflowError, ZeroDivisionError):
            break
        low, f_low = candidate, f_next
    if f_low * f_high > 0:
        return None
    return low, f_low, high, f_high


def _bisection(terms: list[tuple[float, float]]) -> float | None:
    bracket = _bracket(terms)
    if bracket is None:
        return None
    low, f_low, high, _ = bracket
    for _ in range(MAX_BISECTION_ITERATIONS):
        mid = (low + high) / 2
        try:
            f_mid = _npv(mid, terms)
        except (OverflowError, ZeroDivisionError):
            return None
        if abs(f_mid) < TOLERANCE or (high - low) / 2 < TOLERANCE:
            return mid
        if f_low * f_mid < 0:
            high = mid
        else:
            low, f_low = mid, f_mid
    return None


def xirr(flows: Sequence[CashFlow], guess: float = 0.1) -> float:
    """Rate ``r`` with ``xnpv(r, flows) == 0``, as a fraction (0.12 = 12%)."""
    if len(flows) < 2:
        logger.warning("XIRR needs at least two cash flows, got %d", len(flows))
        return math.nan
    if len({flow.when for flow in flows}) < 2:
        logger.warning("XIRR needs cash flows on more than one date")
        return math.nan
    if not (any(flow.amount > 0 for flow in flows) and any(flow.amount < 0 for flow in flows)):
        logger.warning("XIRR needs at least one positive and one negative cash flow")
        return math.nan

    terms = _year_fractions(flows)
    rate = _newton(terms, guess)
    if rate is None:
        logger.debug("Newton did not converge from guess %s, falling back to bisection", guess)
        rate = _bisection(terms)
    if rate is None:
        logger.warning("XIRR did not converge for %d cash flows", len(flows))
        return math.nan
    return rate


def xirr_percent(flows: Sequence[CashFlow]) -> float:
    return xirr(flows) * 100
