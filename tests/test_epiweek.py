from datetime import date, timedelta

import pandas as pd
import pytest

from rsv_pipeline.tasks.epiweek import (
    add_epi_columns,
    mmwr_week,
    mmwr_year_start,
    season_label,
    season_week,
    weeks_in_year,
)


@pytest.mark.parametrize(
    "d, expected",
    [
        (date(2021, 1, 3), (2021, 1, 1)),
        (date(2021, 1, 2), (2020, 53, 7)),
        (date(2022, 1, 1), (2021, 52, 7)),
        (date(2019, 12, 29), (2020, 1, 1)),
        (date(2021, 7, 4), (2021, 27, 1)),
        (date(2021, 10, 2), (2021, 39, 7)),
    ],
)
def test_mmwr_week_known_dates(d, expected):
    assert mmwr_week(d) == expected


def test_year_start_is_sunday():
    for year in range(2000, 2031):
        assert mmwr_year_start(year).weekday() == 6


@pytest.mark.parametrize("year, n", [(2014, 53), (2015, 52), (2020, 53), (2021, 52)])
def test_weeks_in_year(year, n):
    assert weeks_in_year(year) == n


@pytest.mark.parametrize(
    "year, week, expected",
    [
        (2021, 27, (2021, 1)),
        (2021, 52, (2021, 26)),
        (2022, 1, (2021, 27)),
        (2022, 26, (2021, 52)),
        (2021, 26, (2020, 53)),
        (2014, 53, (2014, 27)),
        (2015, 1, (2014, 28)),
    ],
)
def test_season_week(year, week, expected):
    assert season_week(year, week) == expected


def test_season_weeks_are_contiguous_across_long_years():
    # 2014 and 2020 have 53 MMWR weeks
    d = date(2013, 7, 6)
    prev = None
    while d < date(2022, 7, 1):
        key = season_week(*mmwr_week(d)[:2])
        if prev is not None:
            if key[0] == prev[0]:
                assert key[1] == prev[1] + 1
            else:
                assert key == (prev[0] + 1, 1)
        prev = key
        d += timedelta(days=7)


def test_mapping_is_deterministic():
    d = date(2023, 3, 15)
    assert mmwr_week(d) == mmwr_week(d)
    assert season_week(*mmwr_week(d)[:2]) == season_week(*mmwr_week(d)[:2])


def test_season_label():
    assert season_label(2021) == "2021-22"
    assert season_label(1999) == "1999-00"


def test_add_epi_columns_fills_missing_season_only():
    df = pd.DataFrame(
        {
            "Region": ["Connecticut", "Connecticut"],
            "Season": ["2021-22", None],
            "Week Observed": ["2021-10-02", "2022-10-01"],
        }
    )
    out = add_epi_columns(df)

    assert list(out["MMWRyear"]) == [2021, 2022]
    assert list(out["MMWRweek"]) == [13, 13]
    assert list(out["MMWRday"]) == [7, 7]
    assert list(out["Season"]) == ["2021-22", "2022-23"]
    # input untouched
    assert df["Season"].isna().sum() == 1
    assert "MMWRyear" not in df.columns


def test_add_epi_columns_without_season_column():
    df = pd.DataFrame({"Week Observed": pd.to_datetime(["2022-01-08"])})
    out = add_epi_columns(df)
    assert out.loc[0, "MMWRyear"] == 2021
    assert out.loc[0, "MMWRweek"] == 27
    assert out.loc[0, "Season"] == "2021-22"


def test_add_epi_columns_rejects_bad_dates():
    with pytest.raises(ValueError):
        add_epi_columns(pd.DataFrame({"Week Observed": ["not a date"]}))
