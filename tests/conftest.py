import numpy as np
import pandas as pd
import pytest


SEASON_WEEKS = 30


def _bell(n: int, peak: float, rng: np.random.Generator) -> np.ndarray:
    i = np.arange(n)
    base = peak * np.exp(-(((i - n / 2) / (n / 6)) ** 2))
    return np.round(base + rng.integers(0, 5, size=n)).astype(float)


def make_raw_frame() -> pd.DataFrame:
    """Synthetic harmonized extract shaped like the RSV-NET snapshot.

    - one full season (2021-22) of weekly Saturdays for three regions x two levels
    - an all-zero series (Georgia, 0-4 yr)
    - a three-week 2022-23 season for Connecticut, N/A with no Season label
    - a whole-season total row (no week) and rows from another program
    """
    rng = np.random.default_rng(7)
    dates = pd.date_range("2021-10-02", periods=SEASON_WEEKS, freq="7D")
    rows = []

    def add(dataset, region, level, season, week, positives):
        rows.append(
            {
                "Dataset": dataset,
                "Disease": "RSV" if dataset == "RSV-NET" else "Influenza",
                "Region Type": "Overall" if region == "All Sites" else "State",
                "Region": region,
                "Season": season,
                "Level": level,
                "Week Observed": week,
                "Positives Detected": positives,
                "Tests Administered": positives * 10,
                "Crude Rate": 0.1,
                "Cumulative Crude Rate": 1.0,
                "Age-Adjusted Rate": 0.1,
                "Cumulative Age-Adjusted Rate": 1.0,
            }
        )

    for region in ["Connecticut", "Georgia", "All Sites"]:
        for level in ["N/A", "0-4 yr"]:
            if region == "Georgia" and level == "0-4 yr":
                counts = np.zeros(SEASON_WEEKS)
            else:
                counts = _bell(SEASON_WEEKS, 60.0, rng)
            for d, c in zip(dates, counts):
                add("RSV-NET", region, level, "2021-22", d, float(c))

    for d, c in zip(pd.date_range("2022-10-01", periods=3, freq="7D"), [3.0, 5.0, 4.0]):
        add("RSV-NET", "Connecticut", "N/A", None, d, c)

    add("RSV-NET", "Connecticut", "N/A", "2021-22", pd.NaT, 900.0)
    for d in dates[:5]:
        add("FluSurv-NET", "Connecticut", "N/A", "2021-22", d, 1000.0)

    return pd.DataFrame(rows)


@pytest.fixture
def raw_df() -> pd.DataFrame:
    return make_raw_frame()


@pytest.fixture
def params(tmp_path, raw_df) -> dict:
    raw_path = tmp_path / "raw" / "All Programs_Respiratory Infections.gz.parquet"
    raw_path.parent.mkdir(parents=True)
    raw_df.to_parquet(raw_path, index=False)
    return {
        "project": {
            "data_dir": str(tmp_path / "data"),
            "reports_dir": str(tmp_path / "reports"),
            "runs_dir": str(tmp_path / "runs"),
        },
        "clean": {
            "input": str(raw_path),
            "output": str(tmp_path / "processed" / "RSV-NET Infections.gz.parquet"),
            "program": "RSV-NET",
            "exclude_regions": ["All Sites"],
            "compression_level": 5,
        },
        "smooth": {
            "min_points": 5,
            "short_group_policy": "passthrough",
            "kernel": {"nn": 0.3, "h": 0.05, "degree": 2},
        },
        "inspect": {"regions": ["Connecticut"], "levels": []},
    }
