"""Persist stage: column ordering and the gzip parquet writer."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..orchestrator.logging import get_logger


OUTPUT_COLUMNS = [
    "Region",
    "Level",
    "Season",
    "MMWRyear",
    "MMWRweek",
    "MMWRday",
    "Week Observed",
    "Positives Detected",
    "Scaled Positives",
    "Spline",
    "Kernel",
    "Smoothed",
]


def order_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lead with the output columns; any other columns follow in input order."""
    lead = [c for c in OUTPUT_COLUMNS if c in df.columns]
    rest = [c for c in df.columns if c not in OUTPUT_COLUMNS]
    return df[lead + rest]


def write_snapshot(df: pd.DataFrame, path: str | Path, compression_level: int = 5) -> Path:
    logger = get_logger("persist")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(
        path, index=False, compression="gzip", compression_level=compression_level
    )
    logger.info("Wrote %d rows to %s", len(df), path)
    return path
