"""Small helpers for reading config params and building artifact paths."""

from __future__ import annotations

from typing import Dict, List


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def slugify(s: str) -> str:
    return (
        (s or "").strip().lower().replace(" ", "_").replace("/", "-").replace("\\", "-")
    )


def data_dir(p: Dict) -> str:
    return _get(p, "project", "data_dir", default="data")


def reports_dir(p: Dict) -> str:
    return _get(p, "project", "reports_dir", default="reports")


def raw_snapshot(p: Dict) -> str:
    return _get(
        p,
        "clean",
        "input",
        default=f"{data_dir(p)}/raw/All Programs_Respiratory Infections.gz.parquet",
    )


def clean_snapshot(p: Dict) -> str:
    return _get(
        p, "clean", "output", default=f"{data_dir(p)}/processed/RSV-NET Infections.gz.parquet"
    )


def program(p: Dict) -> str:
    return _get(p, "clean", "program", default="RSV-NET")


def exclude_regions(p: Dict) -> List[str]:
    return list(_get(p, "clean", "exclude_regions", default=["All Sites"]))


def drop_columns(p: Dict) -> List[str]:
    return list(
        _get(
            p,
            "clean",
            "drop_columns",
            default=[
                "Dataset",
                "Disease",
                "Region Type",
                "Tests Administered",
                "Age-Adjusted Rate",
                "Cumulative Age-Adjusted Rate",
            ],
        )
    )


def compression_level(p: Dict) -> int:
    return int(_get(p, "clean", "compression_level", default=5))


def min_points(p: Dict) -> int:
    return int(_get(p, "smooth", "min_points", default=5))


def short_group_policy(p: Dict) -> str:
    return str(_get(p, "smooth", "short_group_policy", default="passthrough"))


def kernel_params(p: Dict) -> Dict[str, float]:
    cfg = _get(p, "smooth", "kernel", default={}) or {}
    return {
        "nn": float(cfg.get("nn", 0.3)),
        "h": float(cfg.get("h", 0.05)),
        "degree": int(cfg.get("degree", 2)),
    }


def fits_dir(p: Dict) -> str:
    return f"{reports_dir(p)}/fits"


def inspect_selection(p: Dict, key: str) -> List[str]:
    return list(_get(p, "inspect", key, default=[]) or [])
