"""Ingestion stage.

Reads the harmonized respiratory-infections snapshot (parquet) and checks that
the columns the cleaning stages rely on are present.
"""

from pathlib import Path
from typing import Sequence

import pandas as pd

from ..orchestrator.logging import get_logger


REQUIRED_COLUMNS = (
    "Dataset",
    "Region",
    "Level",
    "Week Observed",
    "Positives Detected",
)


def validate_schema(df: pd.DataFrame, required: Sequence[str] = REQUIRED_COLUMNS) -> None:
    missing_columns = [col for col in required if col not in df.columns]
    if missing_columns:
        raise ValueError(f"Missing required columns: {missing_columns}")


def read_snapshot(path: str | Path) -> pd.DataFrame:
    """Read a raw surveillance snapshot and validate its schema."""
    logger = get_logger("ingest")
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Source snapshot not found: {path}")

    logger.info("Reading snapshot from %s", path)
    df = pd.read_parquet(path)
    logger.info("Loaded %d raw rows, %d columns", len(df), len(df.columns))

    validate_schema(df)
    return df
