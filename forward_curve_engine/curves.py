from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np
import pandas as pd

from . import pwflat
from .pwflat import NAN

logger = logging.getLogger(__name__)

_MIN_CAPACITY = 8


class KnotOrderError(ValueError):
    """Raised when a knot would break the strictly increasing, non-negative time ordering."""


def _readonly(a: np.ndarray) -> np.ndarray:
    v = a.view()
    v.flags.writeable = False
    return v


class Curve(ABC):
    """
    Read-only piecewise-flat forward curve.

    Public methods are fixed; subclasses only decide where the knots live by
    overriding ``_size``, ``_time`` and ``_rate``. All evaluation delegates to
    the kernels in ``pwflat``, so ``f_ext`` (extrapolation rate past the last
    knot) defaults to NaN everywhere.
    """

    def size(self) -> int:
        return self._size()

    def time(self) -> np.ndarray:
        return self._time()

    def rate(self) -> np.ndarray:
        return self._rate()

    def __len__(self) -> int:
        return self.size()

    def knots(self) -> Iterator[Tuple[float, float]]:
        for t, f in zip(self.time(), self.rate()):
            yield float(t), float(f)

    def is_valid(self) -> bool:
        """Knot times are non-negative and strictly increasing."""
        t = self.time()
        return pwflat.monotonic(t) and (len(t) == 0 or t[0] >= 0)

    # ---- evaluation ----

    def value(self, u: float, f_ext: float = NAN) -> float:
        return pwflat.value(u, self.time(), self.rate(), f_ext)

    def __call__(self, u: float, f_ext: float = NAN) -> float:
        return self.value(u, f_ext)

    def integral(self, u: float, f_ext: float = NAN) -> float:
        return pwflat.integral(u, self.time(), self.rate(), f_ext)

    def discount(self, u: float, f_ext: float = NAN) -> float:
        return pwflat.discount(u, self.time(), self.rate(), f_ext)

    def spot(self, u: float, f_ext: float = NAN) -> float:
        return pwflat.spot(u, self.time(), self.rate(), f_ext)

    # ---- valuation ----

    def present_value(self, u: Sequence[float], c: Sequence[float], f_ext: float = NAN) -> float:
        return pwflat.present_value(u, c, self.time(), self.rate(), f_ext)

    def duration(self, u: Sequence[float], c: Sequence[float], f_ext: float = NAN) -> float:
        return pwflat.duration(u, c, self.time(), self.rate(), f_ext)

    def partial_duration(self, u: Sequence[float], c: Sequence[float], f_ext: float = NAN) -> float:
        return pwflat.partial_duration(u, c, self.time(), self.rate(), f_ext)

    def shifted(self, bump: float) -> "PwflatCurve":
        """New owning curve with every knot rate shifted by ``bump`` (absolute, 1bp = 0.0001)."""
        logger.debug("Shifting %d knots by %s", self.size(), bump)
        return PwflatCurve(self.time(), self.rate() + bump)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(time={self.time().tolist()}, rate={self.rate().tolist()})"

    @abstractmethod
    def _size(self) -> int:
        ...

    @abstractmethod
    def _time(self) -> np.ndarray:
        ...

    @abstractmethod
    def _rate(self) -> np.ndarray:
        ...


class CurveView(Curve):
    """
    Non-owning curve over caller arrays.

    float64 numpy arrays are wrapped without copying, so the view reflects the
    caller's memory and must not outlive it. Other inputs (lists, int or float32
    arrays) are converted to a private float64 copy and no longer track the
    caller. Ordering is not checked here; use
    ``is_valid()`` before trusting results.
    """

    def __init__(self, t: Sequence[float], f: Sequence[float]):
        t = np.asarray(t, dtype=float)
        f = np.asarray(f, dtype=float)
        if t.ndim != 1 or t.shape != f.shape:
            raise ValueError("time and rate must be 1-d arrays of the same length")

        self._t = _readonly(t)
        self._f = _readonly(f)

    def _size(self) -> int:
        return len(self._t)

    def _time(self) -> np.ndarray:
        return self._t

    def _rate(self) -> np.ndarray:
        return self._f


class PwflatCurve(Curve):
    """
    Owning, append-only curve.

    Every knot goes through ``append``, which enforces strictly increasing,
    non-negative times. A rejected knot leaves the curve unchanged.

    Not safe for appends concurrent with reads: finish building before sharing.
    """

    def __init__(self, t: Sequence[float] = (), f: Sequence[float] = ()):
        if len(t) != len(f):
            raise ValueError("time and rate must have the same length")

        capacity = max(len(t), _MIN_CAPACITY)
        self._t = np.empty(capacity, dtype=float)
        self._f = np.empty(capacity, dtype=float)
        self._n = 0

        for ti, fi in zip(t, f):
            self.append(ti, fi)

    def append(self, time: float, rate: float) -> "PwflatCurve":
        time = float(time)
        rate = float(rate)

        if self._n > 0 and not time > self._t[self._n - 1]:
            raise KnotOrderError(
                f"knot time {time} must be strictly greater than last time {self._t[self._n - 1]}"
            )
        if not time >= 0:
            raise KnotOrderError(f"knot time must be non-negative: {time}")

        if self._n == len(self._t):
            self._grow()

        self._t[self._n] = time
        self._f[self._n] = rate
        self._n += 1

        return self

    def extend(self, knots: Iterable[Tuple[float, float]]) -> "PwflatCurve":
        for time, rate in knots:
            self.append(time, rate)
        return self

    def _grow(self) -> None:
        capacity = 2 * len(self._t)

        t = np.empty(capacity, dtype=float)
        f = np.empty(capacity, dtype=float)
        t[: self._n] = self._t[: self._n]
        f[: self._n] = self._f[: self._n]

        self._t, self._f = t, f

    def _size(self) -> int:
        return self._n

    def _time(self) -> np.ndarray:
        return _readonly(self._t[: self._n])

    def _rate(self) -> np.ndarray:
        return _readonly(self._f[: self._n])


def curve_report(curve: Curve, f_ext: float = NAN) -> pd.DataFrame:
    """Per-knot QC table: cumulative integral, discount factor and spot rate at each knot time."""
    t = curve.time()
    f = curve.rate()

    return pd.DataFrame(
        {
            "time": t,
            "rate": f,
            "integral": [curve.integral(u, f_ext) for u in t],
            "discount": [curve.discount(u, f_ext) for u in t],
            "spot": [curve.spot(u, f_ext) for u in t],
            "time_monotone": np.r_[True, np.diff(t) > 0] if len(t) else np.array([], dtype=bool),
        }
    )
