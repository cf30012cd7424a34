"""Smoothing stage.

The weekly scaled series are choppy, so each (Region, Level, season) series
gets two independent fits over season week: a smoothing spline and a
Gaussian-kernel local regression. Predictions are clamped at zero and the
scaled and smoothed columns are rounded to whole numbers.
"""

from __future__ import annotations

from typing import Dict, List

import numpy as np
import pandas as pd

from ..models import SMOOTHERS, SPLINE_MIN_POINTS, fit_kernel, fit_spline
from ..orchestrator.logging import get_logger


GROUP_KEYS = ["Region", "Level", "MMWRyear"]
SHORT_GROUP_POLICIES = ("passthrough", "drop")
ROUNDED_COLUMNS = ["Scaled Positives", *SMOOTHERS]


def _fit_group(g: pd.DataFrame, kernel: Dict[str, float]) -> pd.DataFrame:
    g = g.sort_values("MMWRweek")
    x = g["MMWRweek"].to_numpy(dtype=float)
    y = g["Scaled Positives"].to_numpy(dtype=float)
    g = g.copy()
    g["Spline"] = fit_spline(x, y)
    g["Kernel"] = fit_kernel(x, y, **kernel)
    g["Smoothed"] = True
    return g


def _passthrough_group(g: pd.DataFrame) -> pd.DataFrame:
    g = g.sort_values("MMWRweek").copy()
    for col in SMOOTHERS:
        g[col] = g["Scaled Positives"].astype(float)
    g["Smoothed"] = False
    return g


def smooth_groups(
    df: pd.DataFrame,
    min_points: int = 5,
    short_group_policy: str = "passthrough",
    kernel: Dict[str, float] | None = None,
) -> pd.DataFrame:
    """Add ``Spline``, ``Kernel`` and ``Smoothed`` columns, one fit per group.

    Groups with fewer than `min_points` weeks (never fewer than the spline
    needs) are either copied through unsmoothed or dropped, per
    `short_group_policy`.
    """
    logger = get_logger("smooth")
    if short_group_policy not in SHORT_GROUP_POLICIES:
        raise ValueError(
            f"Unknown short_group_policy {short_group_policy!r}; "
            f"expected one of {SHORT_GROUP_POLICIES}"
        )
    kernel = kernel or {}
    threshold = max(int(min_points), SPLINE_MIN_POINTS)

    dupes = df.duplicated(subset=GROUP_KEYS + ["MMWRweek"], keep=False)
    if dupes.any():
        sample = df.loc[dupes, GROUP_KEYS + ["MMWRweek"]].head(5)
        raise ValueError(f"Duplicate (Region, Level, season, week) rows:\n{sample.to_string()}")

    parts: List[pd.DataFrame] = []
    n_fit, n_short = 0, 0
    for key, g in df.groupby(GROUP_KEYS, sort=True, dropna=False):
        if len(g) >= threshold:
            parts.append(_fit_group(g, kernel))
            n_fit += 1
            continue
        n_short += 1
        logger.warning(
            "Group %s has %d weeks (< %d); %s", key, len(g), threshold, short_group_policy
        )
        if short_group_policy == "passthrough":
            parts.append(_passthrough_group(g))

    logger.info("Fitted %d groups, %d short groups", n_fit, n_short)
    if not parts:
        return df.iloc[0:0].assign(Spline=[], Kernel=[], Smoothed=[])
    return pd.concat(parts, ignore_index=True)


def clamp_and_round(df: pd.DataFrame) -> pd.DataFrame:
    """Clamp smoothed predictions at zero and round to whole numbers (half to even)."""
    out = df.copy()
    for col in SMOOTHERS:
        n_neg = int((out[col] < 0).sum())
        if n_neg:
            get_logger("smooth").info("Clamping %d negative %s values to 0", n_neg, col)
        out[col] = out[col].clip(lower=0)
    out[ROUNDED_COLUMNS] = np.round(out[ROUNDED_COLUMNS].astype(float), 0)
    return out
