import math

import numpy as np
import pytest

from forward_curve_engine.pwflat import (
    discount,
    duration,
    integral,
    monotonic,
    partial_duration,
    present_value,
    spot,
    strictly_increasing,
    value,
)


@pytest.fixture(scope="module")
def knots():
    return [1.0, 2.0, 3.0], [0.1, 0.2, 0.3]


# ---- monotonic ----

def test_monotonic_strictly_increasing_sequences(knots):
    t, f = knots
    assert monotonic(t)
    assert monotonic(f)
    assert monotonic([])
    assert monotonic([5.0])
    assert monotonic(np.array(t))
    assert strictly_increasing is monotonic


def test_monotonic_rejects_first_violation(knots):
    _, f = knots
    assert not monotonic([f[0], f[1], -1.0])
    assert not monotonic(reversed(f))
    assert not monotonic([1.0, 1.0]), "Equal neighbours are not strictly increasing"
    assert not monotonic([1.0, float("nan"), 3.0])


# ---- value ----

def test_value_empty_curve():
    assert math.isnan(value(0, [], []))
    assert math.isnan(value(1, [], []))
    assert math.isnan(value(-1, [], []))
    assert math.isnan(value(-1, [], [], 0.2)), "Negative time is undefined even with extrapolation"
    assert value(1, [], [], 0.2) == 0.2
    assert value(0, [], [], 0.2) == 0.2


@pytest.mark.parametrize("u, expected", [(0.0, 0.1), (0.5, 0.1), (1.0, 0.1)])
def test_value_single_knot(u, expected):
    assert value(u, [1.0], [0.1]) == expected
    assert value(u, [1.0], [0.1], 0.2) == expected


def test_value_single_knot_out_of_domain():
    assert math.isnan(value(-1.0, [1.0], [0.1]))
    assert math.isnan(value(1.5, [1.0], [0.1])), "No extrapolation without f_ext"
    assert math.isnan(value(-1.0, [1.0], [0.1], 0.2))
    assert value(1.5, [1.0], [0.1], 0.2) == 0.2


def test_value_right_closed_at_knots(knots):
    t, f = knots
    for ti, fi in zip(t, f):
        assert value(ti, t, f) == fi


def test_value_inside_segments(knots):
    t, f = knots
    assert value(0.5, t, f) == 0.1
    assert value(1.5, t, f) == 0.2
    assert value(2.999, t, f) == 0.3
    assert value(3.5, t, f, 0.25) == 0.25


def test_value_accepts_numpy_arrays(knots):
    t, f = knots
    assert value(1.5, np.array(t), np.array(f)) == 0.2


# ---- integral ----

def test_integral_out_of_domain(knots):
    t, f = knots
    assert math.isnan(integral(-1.0, t, f))
    assert math.isnan(integral(4.0, t, f))
    assert math.isnan(integral(0.0, [], []))


def test_integral_matches_accumulated_sums(knots):
    t, f = knots
    assert integral(0.0, t, f) == 0
    assert integral(0.5, t, f) == 0.1 * 0.5
    assert integral(1.0, t, f) == 0.1
    assert integral(1.5, t, f) == 0.1 + 0.2 * 0.5
    assert integral(2.5, t, f) == 0.1 + 0.2 + 0.3 * 0.5
    assert abs(integral(3.0, t, f) - 0.6) < 1e-10


def test_integral_at_knots_is_segment_sum(knots):
    t, f = knots
    acc, t_prev = 0.0, 0.0
    for ti, fi in zip(t, f):
        acc += fi * (ti - t_prev)
        t_prev = ti
        assert integral(ti, t, f) == acc


def test_integral_extrapolation(knots):
    t, f = knots
    assert abs(integral(3.5, t, f, 0.2) - 0.7) < 1e-10
    assert integral(2.0, [], [], 0.2) == 0.2 * 2.0


# ---- discount ----

@pytest.mark.parametrize(
    "u, expected",
    [(0.0, 0.0), (0.5, 0.05), (1.0, 0.1), (1.5, 0.2), (2.0, 0.3), (2.5, 0.45), (3.0, 0.6)],
)
def test_discount_inside_curve(knots, u, expected):
    t, f = knots
    assert abs(discount(u, t, f) - math.exp(-expected)) < 1e-10
    assert abs(discount(u, t, f, 0.2) - math.exp(-expected)) < 1e-10
    assert discount(u, t, f) == math.exp(-integral(u, t, f))


def test_discount_negative_rates_exceed_one():
    t, f = [1.0, 2.0], [-0.01, -0.02]
    assert discount(1.0, t, f) > 1.0
    assert abs(discount(2.0, t, f) - math.exp(0.03)) < 1e-12
    assert abs(discount(3.0, t, f, -0.01) - math.exp(0.04)) < 1e-12
    assert discount(2.0, t, f) > discount(1.0, t, f), "Negative forwards give increasing discount factors"
    assert abs(spot(2.0, t, f) + 0.015) < 1e-12


def test_discount_overflow_returns_inf():
    d = discount(200000.0, [1.0], [0.01], -0.01)
    assert d == math.inf, "Huge negative integral overflows to inf instead of raising"
    assert present_value([200000.0], [1.0], [1.0], [0.01], -0.01) == math.inf
    assert math.isnan(discount(200000.0, [1.0], [0.01])), "Still NaN without extrapolation"


def test_discount_out_of_domain(knots):
    t, f = knots
    assert math.isnan(discount(-0.5, t, f))
    assert math.isnan(discount(-0.5, t, f, 0.2))
    assert math.isnan(discount(3.5, t, f))
    assert abs(discount(3.5, t, f, 0.2) - math.exp(-0.7)) < 1e-10


# ---- spot ----

@pytest.mark.parametrize(
    "u, expected",
    [(0.0, 0.1), (0.5, 0.1), (1.0, 0.1), (1.5, 0.2 / 1.5), (2.0, 0.15), (2.5, 0.45 / 2.5), (3.0, 0.2)],
)
def test_spot_inside_curve(knots, u, expected):
    t, f = knots
    assert abs(spot(u, t, f) - expected) < 1e-10
    assert abs(spot(u, t, f, 0.2) - expected) < 1e-10


def test_spot_first_segment_is_exact_rate(knots):
    t, f = knots
    assert spot(0.5, t, f) == 0.1
    assert spot(1.0, t, f) == 0.1


def test_spot_is_average_rate_past_first_knot(knots):
    t, f = knots
    for u in (1.25, 2.0, 2.75, 3.0):
        assert spot(u, t, f) == integral(u, t, f) / u


def test_spot_out_of_domain(knots):
    t, f = knots
    assert math.isnan(spot(-0.5, t, f))
    assert math.isnan(spot(-0.5, t, f, 0.2))
    assert math.isnan(spot(3.5, t, f))
    assert abs(spot(3.5, t, f, 0.2) - 0.2) < 1e-10


def test_spot_empty_curve():
    assert spot(0.0, [], [], 0.2) == 0.2
    assert abs(spot(2.0, [], [], 0.2) - 0.2) < 1e-15
    assert math.isnan(spot(2.0, [], []))


# ---- present value and durations ----

def test_present_value_prefix_sums(knots):
    t, f = knots
    u = [0.0, 1.0, 2.0, 3.0, 4.0]
    c = [0.0, 1.0, 2.0, 3.0, 4.0]

    total = 0.0
    for m in range(1, len(u) + 1):
        total += c[m - 1] * discount(u[m - 1], t, f, 0.2)
        pv = present_value(u[:m], c[:m], t, f, 0.2)
        assert not math.isnan(pv)
        assert abs(total - pv) < 1e-10
        if u[m - 1] > t[-1]:
            assert math.isnan(present_value(u[:m], c[:m], t, f)), "Flow past the curve needs f_ext"
        else:
            assert abs(total - present_value(u[:m], c[:m], t, f)) < 1e-10


def test_present_value_worked_example(knots):
    t, f = knots
    u = [1.0, 2.0, 3.0, 4.0]
    c = [1.0, 2.0, 3.0, 4.0]
    expected = math.exp(-0.1) + 2 * math.exp(-0.3) + 3 * math.exp(-0.6) + 4 * math.exp(-0.8)
    assert abs(present_value(u, c, t, f, 0.2) - expected) < 1e-10
    assert math.isnan(present_value(u, c, t, f))


def test_present_value_negative_time_is_undefined(knots):
    t, f = knots
    assert math.isnan(present_value([-1.0, 1.0], [1.0, 1.0], t, f, 0.2))


def test_present_value_empty_cashflows(knots):
    t, f = knots
    assert present_value([], [], t, f) == 0.0


def test_cashflow_length_mismatch_raises(knots):
    t, f = knots
    with pytest.raises(ValueError):
        present_value([1.0, 2.0], [1.0], t, f)
    with pytest.raises(ValueError):
        duration([1.0], [], t, f)
    with pytest.raises(ValueError):
        partial_duration([1.0, 2.0], [1.0], t, f)


def test_duration_closed_form(knots):
    t, f = knots
    u = [1.0, 2.0, 3.0, 4.0]
    c = [1.0, 2.0, 3.0, 4.0]
    expected = -sum(ui * ci * discount(ui, t, f, 0.2) for ui, ci in zip(u, c))
    assert abs(duration(u, c, t, f, 0.2) - expected) < 1e-12
    assert math.isnan(duration(u, c, t, f))


def test_partial_duration_only_counts_tail(knots):
    t, f = knots
    u = [1.0, 2.0, 3.0, 4.0]
    c = [1.0, 2.0, 3.0, 4.0]

    expected = -(4.0 - 3.0) * 4.0 * discount(4.0, t, f, 0.2)
    assert abs(partial_duration(u, c, t, f, 0.2) - expected) < 1e-12

    # flow exactly at the last knot is not reached by the shift
    assert partial_duration([3.0], [3.0], t, f) == 0.0
    assert partial_duration([1.0, 2.0], [1.0, 2.0], t, f) == 0.0


def test_partial_duration_empty_curve_shifts_from_zero():
    u = [1.0, 2.5]
    c = [1.0, 1.0]
    assert abs(partial_duration(u, c, [], [], 0.05) - duration(u, c, [], [], 0.05)) < 1e-15


def test_partial_duration_empty_curve_propagates_negative_time():
    u = [-1.0, 1.0]
    c = [1.0, 1.0]
    assert math.isnan(present_value(u, c, [], [], 0.05))
    assert math.isnan(partial_duration(u, c, [], [], 0.05)), "Empty curve shifts every flow, including invalid ones"


def test_partial_duration_no_cashflows(knots):
    t, f = knots
    assert partial_duration([], [], t, f) == 0.0
