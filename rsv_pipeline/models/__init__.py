"""Smoothers fitted to each (Region, Level, season) series."""

from .spline import fit_spline, SPLINE_MIN_POINTS
from .kernel import fit_kernel

# Output column name -> estimator, in output order
SMOOTHERS = ("Spline", "Kernel")

__all__ = ["SMOOTHERS", "SPLINE_MIN_POINTS", "fit_spline", "fit_kernel"]
