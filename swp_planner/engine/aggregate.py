from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from ..data_model import MonthlySnapshot, YearlySnapshot

SUM_COLUMNS = ["Growth", "TotalExpenses", "TotalEMI", "Withdrawal"]
FRAME_COLUMNS = ["MonthIndex", "Period", "CalendarYear", "MonthInYear", "Corpus", *SUM_COLUMNS, "Net"]


def monthly_frame(series: Iterable[MonthlySnapshot]) -> pd.DataFrame:
    records = [
        {
            "MonthIndex": idx,
            "Period": snap.label,
            "CalendarYear": snap.period.year,
            "MonthInYear": snap.period.month,
            "Corpus": snap.corpus,
            "Growth": snap.growth,
            "TotalExpenses": snap.total_expenses,
            "TotalEMI": snap.total_emi,
            "Withdrawal": snap.withdrawal,
            "Net": snap.net,
        }
        for idx, snap in enumerate(series)
    ]
    return pd.DataFrame(records, columns=FRAME_COLUMNS)


def aggregate_frame(df: pd.DataFrame, freq: str = "Y") -> pd.DataFrame:
    """Roll monthly rows up to calendar years (``Y``) or quarters (``Q``).

    Corpus is the opening corpus of each period's first month; flows are sums.
    Periods keep the order in which they first appear.
    """
    freq = (freq or "Y").upper()
    if df.empty:
        return pd.DataFrame(columns=["Period", "Corpus", *SUM_COLUMNS, "Net"])

    df = df.sort_values("MonthIndex").copy()
    if freq == "Q":
        quarter = ((df["MonthInYear"] - 1) // 3 + 1).astype(int)
        df["PeriodKey"] = df["CalendarYear"].astype(str) + " Q" + quarter.astype(str)
    elif freq == "Y":
        df["PeriodKey"] = df["CalendarYear"].astype(str)
    else:
        raise KeyError(f"Unsupported aggregation frequency: {freq!r}")

    grouped = df.groupby("PeriodKey", sort=False).agg(
        Corpus=("Corpus", "first"),
        Growth=("Growth", "sum"),
        TotalExpenses=("TotalExpenses", "sum"),
        TotalEMI=("TotalEMI", "sum"),
        Withdrawal=("Withdrawal", "sum"),
    )
    grouped["Net"] = grouped["Growth"] - grouped["Withdrawal"]
    return grouped.reset_index().rename(columns={"PeriodKey": "Period"})


def aggregate_yearly(series: Iterable[MonthlySnapshot]) -> List[YearlySnapshot]:
    yearly = aggregate_frame(monthly_frame(series), freq="Y")
    return [
        YearlySnapshot(
            period=str(row["Period"]),
            corpus=float(row["Corpus"]),
            growth=float(row["Growth"]),
            total_expenses=float(row["TotalExpenses"]),
            total_emi=float(row["TotalEMI"]),
            withdrawal=float(row["Withdrawal"]),
            net=float(row["Net"]),
        )
        for row in yearly.to_dict("records")
    ]
