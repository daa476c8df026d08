"""
Piecewise-flat forward curve kernels.

A curve is a pair of parallel sequences ``t`` (knot times, strictly increasing,
non-negative) and ``f`` (forward rates) plus an optional extrapolation rate
``f_ext``:

    f(u) = f[i]   if t[i-1] < u <= t[i]   (t[-1] = 0)
         = f_ext  if u > t[n-1]
         = NaN    if u < 0

NaN is the out-of-domain signal. It is returned, never raised, so composed
quantities (discount, spot, present value, durations) inherit it through plain
arithmetic. ``f_ext`` defaults to NaN, i.e. no extrapolation.

Inputs may be lists or numpy arrays; nothing here copies or mutates them.
"""
from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np

NAN = math.nan

_MISSING = object()


def monotonic(values: Iterable) -> bool:
    """True if every adjacent pair satisfies v[i] < v[i+1] (empty/singleton -> True)."""
    previous = _MISSING
    for v in values:
        if previous is not _MISSING and not previous < v:
            return False
        previous = v
    return True


strictly_increasing = monotonic


def _lower_bound(xs: Sequence[float], x: float) -> int:
    # index of the first element >= x
    return int(np.searchsorted(xs, x, side="left"))


def value(u: float, t: Sequence[float], f: Sequence[float], f_ext: float = NAN) -> float:
    """Forward rate at time u: f[i] on (t[i-1], t[i]], f_ext past the last knot."""
    if u < 0:
        return NAN
    n = len(t)
    if n == 0:
        return f_ext

    i = _lower_bound(t, u)

    return f_ext if i == n else f[i]


def integral(u: float, t: Sequence[float], f: Sequence[float], f_ext: float = NAN) -> float:
    """
    Integral of the forward curve from 0 to u.

    Full segments are accumulated left to right, then the partial segment
    containing u is added at its own rate (or at f_ext past the last knot).
    """
    if u < 0:
        return NAN

    n = len(t)
    acc = 0.0
    t_prev = 0.0

    i = 0
    while i < n and t[i] <= u:
        acc += f[i] * (t[i] - t_prev)
        t_prev = t[i]
        i += 1

    if n == 0 or u > t[n - 1]:
        acc += f_ext * (u - t_prev)
    elif i < n:
        acc += f[i] * (u - t_prev)

    return acc


def discount(u: float, t: Sequence[float], f: Sequence[float], f_ext: float = NAN) -> float:
    """D(u) = exp(-integral(u)). Overflows to inf for large negative integrals."""
    try:
        return math.exp(-integral(u, t, f, f_ext))
    except OverflowError:
        return math.inf


def spot(u: float, t: Sequence[float], f: Sequence[float], f_ext: float = NAN) -> float:
    """Continuously compounded spot rate integral(u) / u."""
    if u < 0:
        return NAN
    if len(t) == 0:
        return f_ext if u == 0 else integral(u, t, f, f_ext) / u
    # first segment is flat, so return its rate without dividing
    if u <= t[0]:
        return f[0]

    return integral(u, t, f, f_ext) / u


def _check_cashflows(u: Sequence[float], c: Sequence[float]) -> None:
    if len(u) != len(c):
        raise ValueError(f"cash flow times and amounts differ in length: {len(u)} != {len(c)}")


def present_value(
    u: Sequence[float],
    c: Sequence[float],
    t: Sequence[float],
    f: Sequence[float],
    f_ext: float = NAN,
) -> float:
    """Value of cash flows c[i] paid at times u[i]."""
    _check_cashflows(u, c)

    pv = 0.0
    for ui, ci in zip(u, c):
        pv += ci * discount(ui, t, f, f_ext)

    return pv


def duration(
    u: Sequence[float],
    c: Sequence[float],
    t: Sequence[float],
    f: Sequence[float],
    f_ext: float = NAN,
) -> float:
    """Derivative of present value with respect to a parallel shift of the whole forward curve."""
    _check_cashflows(u, c)

    d = 0.0
    for ui, ci in zip(u, c):
        d -= ui * ci * discount(ui, t, f, f_ext)

    return d


def partial_duration(
    u: Sequence[float],
    c: Sequence[float],
    t: Sequence[float],
    f: Sequence[float],
    f_ext: float = NAN,
) -> float:
    """
    Derivative of present value with respect to a shift of the forward curve
    after the last knot only.

    Cash flow times ``u`` must be sorted. Flows at or before the last knot are
    untouched by the shift and contribute nothing.
    """
    _check_cashflows(u, c)

    n = len(t)
    t0 = 0.0 if n == 0 else t[n - 1]
    # first cash flow at or past the end of the curve; an empty curve shifts every flow
    i0 = _lower_bound(u, t0) if n and len(u) else 0

    d = 0.0
    for i in range(i0, len(u)):
        d -= (u[i] - t0) * c[i] * discount(u[i], t, f, f_ext)

    return d
