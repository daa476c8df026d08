"""
Piecewise-Flat Forward Curve Engine

Modules:
- pwflat: evaluation kernels (value, integral, discount, spot, present value, durations)
- curves: read-only curve interface, non-owning view, owning append-only curve, QC report
- bonds: fixed-coupon bond cash flows + pricing on a forward curve
- portfolio: cash-flow tables + per-bond valuation and sensitivities
- risk: DV01 (analytic and bump-and-reprice), modified duration, flat yield
- scenarios: parallel / tail shift scenario runners
- utils: day count + coupon schedule helpers

Evaluation returns NaN (never raises) for negative times and for times past the
last knot when no extrapolation rate is given.
"""
