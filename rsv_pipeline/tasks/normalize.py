"""Filter/normalize stage.

Narrows the harmonized extract to one surveillance program at the weekly,
sub-national level and adds ``Scaled Positives``: each count as a percentage
of its (Region, Level) maximum.
"""

from __future__ import annotations

from typing import Iterable, List

import numpy as np
import pandas as pd

from ..orchestrator.logging import get_logger


SCALE_KEYS = ["Region", "Level"]


def filter_program(
    df: pd.DataFrame,
    program: str,
    exclude_regions: Iterable[str] = ("All Sites",),
    drop_columns: Iterable[str] = (),
) -> pd.DataFrame:
    """Keep weekly rows of `program`, minus aggregate regions and unused columns.

    Rows with no ``Week Observed`` are whole-season totals and are dropped.
    """
    logger = get_logger("normalize")
    excluded = set(exclude_regions)
    mask = (
        df["Dataset"].eq(program)
        & ~df["Region"].isin(excluded)
        & df["Week Observed"].notna()
    )
    out = df.loc[mask].drop(columns=list(drop_columns), errors="ignore")
    out = out.reset_index(drop=True)
    logger.info("Kept %d of %d rows for program %s", len(out), len(df), program)
    if out.empty:
        raise ValueError(f"No weekly rows left for program {program!r}")
    return out


def _positive_counts(df: pd.DataFrame) -> pd.Series:
    logger = get_logger("normalize")
    counts = pd.to_numeric(df["Positives Detected"], errors="raise").astype(float)
    n_missing = int(counts.isna().sum())
    if n_missing:
        logger.warning("Replacing %d missing positive counts with 0", n_missing)
        counts = counts.fillna(0.0)
    if (counts < 0).any():
        bad = df.loc[counts < 0, SCALE_KEYS + ["Week Observed"]].head(5)
        raise ValueError(f"Negative positive counts found, e.g.:\n{bad.to_string()}")
    return counts


def scale_positives(df: pd.DataFrame, keys: List[str] | None = None) -> pd.DataFrame:
    """Return a copy with ``Scaled Positives`` in [0, 100].

    Groups whose maximum is 0 give an undefined ratio; those rows are set to 0.
    """
    keys = keys or SCALE_KEYS
    out = df.copy()
    counts = _positive_counts(out)
    out["Positives Detected"] = counts
    group_max = counts.groupby([out[k] for k in keys], dropna=False).transform("max")
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = counts / group_max * 100
    n_undefined = int(scaled.isna().sum())
    if n_undefined:
        get_logger("normalize").info(
            "Setting %d undefined scaled values (zero maximum) to 0", n_undefined
        )
    out["Scaled Positives"] = scaled.fillna(0.0)
    return out
