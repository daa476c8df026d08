from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd

from .curves import Curve
from .pwflat import NAN
from .utils import DEFAULT_TIME_DAY_COUNT, coupon_dates, year_fractions


@dataclass(frozen=True)
class Bond:
    bond_id: str
    maturity: pd.Timestamp
    coupon_rate: float
    freq: int = 2
    face: float = 100.0


def bond_cashflows(
    bond: Bond,
    val_date: pd.Timestamp,
    time_day_count: str = DEFAULT_TIME_DAY_COUNT,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Remaining cash flows as (times, amounts).

    Times are year fractions from val_date under ``time_day_count``, the
    curve's time basis. The face is paid with the last coupon.
    """
    pay_dates = coupon_dates(pd.Timestamp(val_date), pd.Timestamp(bond.maturity), bond.freq)

    u = year_fractions(val_date, pay_dates, time_day_count)
    c = np.full(len(pay_dates), bond.face * bond.coupon_rate / bond.freq, dtype=float)
    c[-1] += bond.face

    return u, c


def price_bond(
    curve: Curve,
    bond: Bond,
    val_date: pd.Timestamp,
    f_ext: float = NAN,
    time_day_count: str = DEFAULT_TIME_DAY_COUNT,
) -> float:
    """Dirty price per 100 face. NaN if a flow falls past the curve and f_ext is not given."""
    u, c = bond_cashflows(bond, val_date, time_day_count)
    return 100.0 * curve.present_value(u, c, f_ext) / bond.face


class BondPricer:
    def __init__(self, curve: Curve, f_ext: float = NAN, time_day_count: str = DEFAULT_TIME_DAY_COUNT):
        self.curve = curve
        self.f_ext = f_ext
        self.time_day_count = time_day_count

    def validate(self, bond: Bond, val_date: pd.Timestamp) -> None:
        if pd.Timestamp(val_date) >= pd.Timestamp(bond.maturity):
            raise ValueError(f"{bond.bond_id}: matured at valuation date.")
        if bond.freq not in (1, 2, 4):
            raise NotImplementedError("Supported frequencies: 1, 2, 4.")
        if not (-0.01 <= bond.coupon_rate <= 0.25):
            raise ValueError(f"{bond.bond_id}: coupon out of plausible range.")

    def price(self, bond: Bond, val_date: pd.Timestamp) -> float:
        self.validate(bond, val_date)
        return price_bond(self.curve, bond, val_date, self.f_ext, self.time_day_count)
