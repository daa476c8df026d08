from __future__ import annotations

import logging
from typing import Sequence, Tuple

import pandas as pd

from .curves import Curve
from .portfolio import price_portfolio
from .pwflat import NAN
from .risk import BP
from .utils import DEFAULT_TIME_DAY_COUNT

logger = logging.getLogger(__name__)

DEFAULT_SHOCKS_BP = (-50.0, -25.0, -1.0, 1.0, 25.0, 50.0)


def run_shift_scenarios(
    curve: Curve,
    u: Sequence[float],
    c: Sequence[float],
    f_ext: float = NAN,
    shocks_bp: Sequence[float] = DEFAULT_SHOCKS_BP,
) -> pd.DataFrame:
    """
    Reprice cash flows under parallel and tail-only forward shifts.

    Each row carries the exact PnL next to the first-order estimate from
    ``duration`` (parallel) or ``partial_duration`` (tail).
    """
    base = curve.present_value(u, c, f_ext)
    d = curve.duration(u, c, f_ext)
    pd_tail = curve.partial_duration(u, c, f_ext)

    rows = []
    for bp in shocks_bp:
        bump = bp * BP
        parallel = curve.shifted(bump).present_value(u, c, f_ext + bump)
        tail = curve.present_value(u, c, f_ext + bump)

        rows.append({"shift": "PARALLEL", "shock_bp": bp, "pv": parallel, "pnl": parallel - base, "pnl_first_order": d * bump})
        rows.append({"shift": "TAIL", "shock_bp": bp, "pv": tail, "pnl": tail - base, "pnl_first_order": pd_tail * bump})

    out = pd.DataFrame(rows)
    out["base_pv"] = base
    return out.sort_values(["shift", "shock_bp"]).reset_index(drop=True)


def run_portfolio_scenarios(
    curve: Curve,
    portfolio: pd.DataFrame,
    val_date: pd.Timestamp,
    f_ext: float = NAN,
    shocks_bp: Sequence[float] = DEFAULT_SHOCKS_BP,
    time_day_count: str = DEFAULT_TIME_DAY_COUNT,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Per-bond dirty-price PnL under parallel shifts, plus a per-scenario total."""
    base = price_portfolio(curve, portfolio, val_date, f_ext, time_day_count)[["bond_id", "dirty"]].rename(columns={"dirty": "base"})

    per_bond = base.copy()
    for bp in shocks_bp:
        bump = bp * BP
        name = f"PAR_{bp:+g}bp"
        logger.debug("Running scenario %s", name)

        px = price_portfolio(curve.shifted(bump), portfolio, val_date, f_ext + bump, time_day_count)
        px = px[["bond_id", "dirty"]].rename(columns={"dirty": name})
        per_bond = per_bond.merge(px, on="bond_id", how="left")
        per_bond[name + "_PnL"] = per_bond[name] - per_bond["base"]

    pnl_cols = [col for col in per_bond.columns if col.endswith("_PnL")]
    summary = pd.DataFrame({"scenario": pnl_cols, "total_pnl_per_100_notional": [per_bond[col].sum() for col in pnl_cols]})

    return per_bond, summary
