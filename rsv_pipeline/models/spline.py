from typing import Optional

import numpy as np
from scipy.interpolate import make_smoothing_spline


# make_smoothing_spline rejects shorter series
SPLINE_MIN_POINTS = 5


def fit_spline(x: np.ndarray, y: np.ndarray, lam: Optional[float] = None) -> np.ndarray:
    """Fit a cubic smoothing spline and return its predictions at `x`.

    With ``lam=None`` the penalty is chosen by generalized cross-validation,
    so no tuning is needed per series.

    Args:
        x: strictly increasing abscissae (season weeks)
        y: observations, same length as `x`
        lam: optional fixed smoothing penalty
    Returns: array of fitted values, same length as `x`
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError("x and y must have the same shape")
    if len(x) < SPLINE_MIN_POINTS:
        raise ValueError(f"Need at least {SPLINE_MIN_POINTS} points, got {len(x)}")
    spl = make_smoothing_spline(x, y, lam=lam)
    return spl(x)
