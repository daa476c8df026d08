from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from .curves import Curve
from .pwflat import NAN
from .utils import DEFAULT_TIME_DAY_COUNT, coupon_dates, yearfrac

logger = logging.getLogger(__name__)


def cashflow_table(u: Sequence[float], c: Sequence[float], curve: Curve, f_ext: float = NAN) -> pd.DataFrame:
    """
    Per-flow breakdown of present value and sensitivities.

    Summing the ``pv``, ``duration`` and ``partial_duration`` columns gives the
    curve's ``present_value``, ``duration`` and ``partial_duration``.
    """
    u = np.asarray(u, dtype=float)
    c = np.asarray(c, dtype=float)
    if u.shape != c.shape:
        raise ValueError("cash flow times and amounts differ in length")

    t = curve.time()
    t_last = t[-1] if len(t) else 0.0

    out = pd.DataFrame({"time": u, "cashflow": c})
    out["discount"] = [curve.discount(x, f_ext) for x in u]
    out["pv"] = out["cashflow"] * out["discount"]
    out["duration"] = -out["time"] * out["pv"]
    # only flows at or after the last knot feel a tail shift
    tail = np.where(u >= t_last, u - t_last, 0.0)
    out["partial_duration"] = -tail * out["pv"]
    return out


def build_cashflow_table(
    portfolio: pd.DataFrame,
    val_date: pd.Timestamp,
    time_day_count: str = DEFAULT_TIME_DAY_COUNT,
) -> pd.DataFrame:
    """One row per remaining cash flow of each bond in ``portfolio``."""
    rows = []
    val_date = pd.Timestamp(val_date)

    for _, r in portfolio.iterrows():
        bond_id = str(r["bond_id"])
        maturity = pd.Timestamp(r["maturity"])
        coupon = float(r["coupon_rate"])
        freq = int(r["freq"])
        face = float(r["face"])

        if val_date >= maturity:
            logger.debug("Skipping matured bond %s", bond_id)
            continue

        pay_dates = coupon_dates(val_date, maturity, freq)
        coupon_cf = face * coupon / freq
        for i, d in enumerate(pay_dates):
            cf = coupon_cf + (face if i == len(pay_dates) - 1 else 0.0)
            rows.append((bond_id, d, yearfrac(val_date, d, time_day_count), cf))

    return pd.DataFrame(rows, columns=["bond_id", "pay_date", "time", "cashflow"])


def price_portfolio(
    curve: Curve,
    portfolio: pd.DataFrame,
    val_date: pd.Timestamp,
    f_ext: float = NAN,
    time_day_count: str = DEFAULT_TIME_DAY_COUNT,
) -> pd.DataFrame:
    """
    PV, dirty price per 100, duration and partial duration for each bond.

    Bonds with a flow past the last knot price to NaN unless ``f_ext`` is given.
    """
    cf = build_cashflow_table(portfolio, val_date, time_day_count)
    if cf.empty:
        raise ValueError("Cashflow table is empty. Check portfolio maturities against val_date.")

    priced = []
    for bond_id, flows in cf.groupby("bond_id", sort=False):
        flows = flows.sort_values("time")
        u = flows["time"].to_numpy()
        c = flows["cashflow"].to_numpy()
        priced.append(
            {
                "bond_id": bond_id,
                "pv": curve.present_value(u, c, f_ext),
                "duration": curve.duration(u, c, f_ext),
                "partial_duration": curve.partial_duration(u, c, f_ext),
            }
        )

    static_cols = ["bond_id", "maturity", "coupon_rate", "freq", "face"]
    out = portfolio[static_cols].merge(pd.DataFrame(priced), on="bond_id", how="left")
    out["dirty"] = 100.0 * out["pv"] / out["face"]

    n_missing = int(out["pv"].isna().sum())
    if n_missing:
        logger.warning("%d of %d bonds priced to NaN (cash flows beyond the curve without extrapolation)", n_missing, len(out))

    return out
