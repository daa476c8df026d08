from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Tuple

import numpy as np
import pandas as pd

DEFAULT_TIME_DAY_COUNT = "ACT/365"


def _normalize(convention: str) -> str:
    return convention.upper().replace(" ", "")


def yearfrac(start: pd.Timestamp, end: pd.Timestamp, convention: str = DEFAULT_TIME_DAY_COUNT) -> float:
    """
    Year fraction between two dates.

    Supported conventions: ACT/365 (ACT/365F), ACT/360, 30/360 (30/360US, bond basis).
    """
    start = pd.Timestamp(start)
    end = pd.Timestamp(end)
    if end < start:
        raise ValueError(f"end < start: {start=} {end=}")

    convention = _normalize(convention)

    if convention in ("ACT/365", "ACT/365F"):
        return (end - start).days / 365.0
    if convention == "ACT/360":
        return (end - start).days / 360.0
    if convention in ("30/360", "30/360US"):
        d1 = min(start.day, 30)
        d2 = 30 if (end.day == 31 and d1 == 30) else end.day
        return ((end.year - start.year) * 360 + (end.month - start.month) * 30 + (d2 - d1)) / 360.0

    raise ValueError(f"Unsupported day count convention: {convention}")


def year_fractions(
    val_date: pd.Timestamp,
    dates: Iterable[pd.Timestamp],
    convention: str = DEFAULT_TIME_DAY_COUNT,
) -> np.ndarray:
    """Curve times (year fractions from val_date) for a list of dates."""
    return np.array([yearfrac(val_date, d, convention) for d in dates], dtype=float)


@lru_cache(maxsize=10_000)
def coupon_dates(val_date: pd.Timestamp, maturity: pd.Timestamp, freq: int = 2) -> Tuple[pd.Timestamp, ...]:
    """
    Coupon dates strictly after val_date, anchored at maturity and ending at it.
    """
    if freq <= 0 or 12 % freq:
        raise ValueError(f"freq must divide 12: {freq}")

    val_date = pd.Timestamp(val_date)
    maturity = pd.Timestamp(maturity)
    if maturity <= val_date:
        raise ValueError("Maturity must be after valuation date.")

    months = 12 // freq

    # each date is offset from maturity directly so month-end maturities do not drift
    dates = []
    k = 0
    d = maturity
    while d > val_date:
        dates.append(d)
        k += 1
        d = maturity - pd.DateOffset(months=k * months)

    return tuple(reversed(dates))
