"""Epidemiological-week stage.

MMWR weeks start on Sunday; week 1 of a year is the first such week with at
least four days in that calendar year, so a year has 52 or 53 weeks. For
plotting, weeks are then re-indexed by respiratory season so that season
week 1 is MMWR week 27 (early July) and the season runs into the next year.
"""

from __future__ import annotations

from datetime import date, timedelta
from functools import lru_cache
from typing import Tuple

import pandas as pd

from ..orchestrator.logging import get_logger


SEASON_SHIFT = 26


@lru_cache(maxsize=None)
def mmwr_year_start(year: int) -> date:
    """Sunday that opens MMWR week 1 of `year`."""
    jan1 = date(year, 1, 1)
    days_from_sunday = (jan1.weekday() + 1) % 7
    if days_from_sunday <= 3:
        return jan1 - timedelta(days=days_from_sunday)
    return jan1 + timedelta(days=7 - days_from_sunday)


def weeks_in_year(year: int) -> int:
    return (mmwr_year_start(year + 1) - mmwr_year_start(year)).days // 7


def mmwr_week(d: date) -> Tuple[int, int, int]:
    """Return ``(MMWRyear, MMWRweek, MMWRday)`` for a date; day 1 is Sunday."""
    year = d.year
    if d >= mmwr_year_start(year + 1):
        year += 1
    elif d < mmwr_year_start(year):
        year -= 1
    week = (d - mmwr_year_start(year)).days // 7 + 1
    day = (d.weekday() + 1) % 7 + 1
    return year, week, day


def season_week(year: int, week: int) -> Tuple[int, int]:
    """Shift an MMWR (year, week) so week 1 opens the surveillance season.

    Weeks up to 26 belong to the season that started the year before; they
    continue after that year's last week, which may be week 53.
    """
    if week > SEASON_SHIFT:
        return year, week - SEASON_SHIFT
    prior = year - 1
    return prior, week + weeks_in_year(prior) - SEASON_SHIFT


def season_label(season_year: int) -> str:
    return f"{season_year}-{(season_year + 1) % 100:02d}"


def add_epi_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with season-indexed ``MMWRyear``/``MMWRweek``, ``MMWRday`` and ``Season``."""
    logger = get_logger("epiweek")
    out = df.copy()
    observed = pd.to_datetime(out["Week Observed"], errors="raise").dt.normalize()
    if observed.isna().any():
        raise ValueError(f"{int(observed.isna().sum())} rows have no observed date")
    out["Week Observed"] = observed

    rows = []
    for d in observed.dt.date:
        year, week, day = mmwr_week(d)
        s_year, s_week = season_week(year, week)
        rows.append((s_year, s_week, day))
    epi = pd.DataFrame(rows, columns=["MMWRyear", "MMWRweek", "MMWRday"], index=out.index)
    out[["MMWRyear", "MMWRweek", "MMWRday"]] = epi.astype("int64")

    labels = out["MMWRyear"].map(season_label)
    if "Season" in out.columns:
        out["Season"] = out["Season"].where(out["Season"].notna(), labels)
    else:
        out["Season"] = labels

    logger.info(
        "Mapped %d rows onto %d seasons (%s to %s)",
        len(out),
        out["MMWRyear"].nunique(),
        out["MMWRyear"].min(),
        out["MMWRyear"].max(),
    )
    return out
