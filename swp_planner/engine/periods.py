from __future__ import annotations

from datetime import date


def month_start(day: date) -> date:
    return day.replace(day=1)


def add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_diff(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``, never negative."""
    return max(0, (end.year - start.year) * 12 + (end.month - start.month))
