from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np
from scipy.optimize import brentq

from .curves import Curve
from .pwflat import NAN

logger = logging.getLogger(__name__)

BP = 1e-4


def dv01(u: Sequence[float], c: Sequence[float], curve: Curve, f_ext: float = NAN) -> float:
    """First-order PV change for a +1bp parallel shift of the forward curve (tail included)."""
    return curve.duration(u, c, f_ext) * BP


def tail_dv01(u: Sequence[float], c: Sequence[float], curve: Curve, f_ext: float = NAN) -> float:
    """First-order PV change for a +1bp shift of the extrapolation rate only."""
    return curve.partial_duration(u, c, f_ext) * BP


def bumped_dv01(u: Sequence[float], c: Sequence[float], curve: Curve, f_ext: float = NAN, bp: float = 1.0) -> float:
    """Bump-and-reprice PV change for a parallel shift of ``bp`` basis points."""
    bump = bp * BP
    base = curve.present_value(u, c, f_ext)
    shocked = curve.shifted(bump).present_value(u, c, f_ext + bump)
    logger.debug("Parallel %sbp: base=%s shocked=%s", bp, base, shocked)
    return shocked - base


def bumped_tail_dv01(u: Sequence[float], c: Sequence[float], curve: Curve, f_ext: float = NAN, bp: float = 1.0) -> float:
    """Bump-and-reprice PV change when only the extrapolation rate moves by ``bp`` basis points."""
    bump = bp * BP
    base = curve.present_value(u, c, f_ext)
    shocked = curve.present_value(u, c, f_ext + bump)
    logger.debug("Tail %sbp: base=%s shocked=%s", bp, base, shocked)
    return shocked - base


def modified_duration(u: Sequence[float], c: Sequence[float], curve: Curve, f_ext: float = NAN) -> float:
    """-dPV/dshift / PV, in years."""
    return -curve.duration(u, c, f_ext) / curve.present_value(u, c, f_ext)


def flat_yield(
    u: Sequence[float],
    c: Sequence[float],
    curve: Curve,
    f_ext: float = NAN,
    lo: float = -0.5,
    hi: float = 1.0,
) -> float:
    """
    Flat continuously compounded rate y with sum(c * exp(-y * u)) equal to the curve PV.

    NaN if the curve PV itself is NaN. Raises ValueError if [lo, hi] does not
    bracket the solution.
    """
    u = np.asarray(u, dtype=float)
    c = np.asarray(c, dtype=float)

    target = curve.present_value(u, c, f_ext)
    if math.isnan(target):
        return NAN

    def residual(y: float) -> float:
        return float(np.sum(c * np.exp(-y * u))) - target

    r_lo, r_hi = residual(lo), residual(hi)
    if r_lo * r_hi > 0:
        raise ValueError(f"Flat yield not bracketed in [{lo}, {hi}].")

    y = brentq(residual, lo, hi, maxiter=300, xtol=1e-14)
    logger.debug("Flat yield %s for target pv %s", y, target)
    return float(y)
