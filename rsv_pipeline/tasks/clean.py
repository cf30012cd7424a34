"""Cleaning task.

Turns the harmonized respiratory-infections extract into the smoothed
RSV-NET table used by the workshop examples:

  ingest → filter/normalize → epi-week mapping → per-group smoothing
         → clamp/round → persist

Every stage returns a new frame; only the final table is written.
"""

from __future__ import annotations

from typing import Dict

import pandas as pd

from ..orchestrator import task
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import (
    clean_snapshot,
    compression_level,
    drop_columns,
    exclude_regions,
    kernel_params,
    min_points,
    program,
    raw_snapshot,
    short_group_policy,
)
from .epiweek import add_epi_columns
from .ingest import read_snapshot, validate_schema
from .normalize import filter_program, scale_positives
from .persist import order_columns, write_snapshot
from .smooth import clamp_and_round, smooth_groups


def clean_frame(raw: pd.DataFrame, params: Dict) -> pd.DataFrame:
    """Run every in-memory stage on a raw extract."""
    validate_schema(raw)
    df = filter_program(
        raw,
        program=program(params),
        exclude_regions=exclude_regions(params),
        drop_columns=drop_columns(params),
    )
    df = scale_positives(df)
    df = add_epi_columns(df)
    df = smooth_groups(
        df,
        min_points=min_points(params),
        short_group_policy=short_group_policy(params),
        kernel=kernel_params(params),
    )
    df = clamp_and_round(df)
    return order_columns(df)


@task(
    name="clean",
    inputs=lambda p: [raw_snapshot(p)],
    outputs=lambda p: [clean_snapshot(p)],
)
def clean(params: Dict):
    """Read the raw snapshot, clean it, and write the smoothed snapshot."""
    logger = get_logger("clean")
    raw = read_snapshot(raw_snapshot(params))
    df = clean_frame(raw, params)
    logger.info(
        "Cleaned table: %d rows, %d regions, %d seasons",
        len(df),
        df["Region"].nunique(),
        df["MMWRyear"].nunique(),
    )
    write_snapshot(df, clean_snapshot(params), compression_level(params))
