"""Fit diagnostics task.

Draws the smoothed series of the cleaned table against the scaled
observations, one figure per (Region, Level) with a Spline panel and a
Kernel panel and one line per season. Figures land in `reports/fits/` with an
`index.md` linking them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd

from ..models import SMOOTHERS
from ..orchestrator import task
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import clean_snapshot, fits_dir, inspect_selection, slugify


FIGSIZE = (13, 5)
DPI = 120


def select_series(df: pd.DataFrame, regions: List[str], levels: List[str]) -> List[Tuple[str, str]]:
    """(Region, Level) pairs to draw; an empty filter keeps everything."""
    sub = df
    if regions:
        sub = sub[sub["Region"].isin(regions)]
    if levels:
        sub = sub[sub["Level"].isin(levels)]
    pairs = sub[["Region", "Level"]].drop_duplicates().sort_values(["Region", "Level"])
    return list(pairs.itertuples(index=False, name=None))


def plot_fits(sub: pd.DataFrame, region: str, level: str, out_path: Path) -> Path:
    seasons = sorted(sub["MMWRyear"].unique())
    colors = matplotlib.colormaps["viridis"]([i / max(1, len(seasons) - 1) for i in range(len(seasons))])

    fig, axes = plt.subplots(1, len(SMOOTHERS), figsize=FIGSIZE, dpi=DPI, sharey=True)
    for ax, smoother in zip(axes, SMOOTHERS):
        for season, color in zip(seasons, colors):
            s = sub[sub["MMWRyear"] == season].sort_values("MMWRweek")
            label = s["Season"].iloc[0] if "Season" in s.columns else str(season)
            ax.plot(s["MMWRweek"], s[smoother], "-", color=color, linewidth=1.8, label=label)
            ax.scatter(s["MMWRweek"], s["Scaled Positives"], color=color, s=10, alpha=0.6)
        ax.set_title(smoother)
        ax.set_xlabel("Weeks since July")
        ax.grid(True, alpha=0.3, linestyle="--")
    axes[0].set_ylabel("RSV positive tests (scaled)")
    axes[-1].legend(loc="upper right", fontsize=8, title="Season")
    fig.suptitle(f"{region}, {level}")
    fig.tight_layout()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, bbox_inches="tight")
    plt.close(fig)
    return out_path


@task(
    name="inspect_fits",
    inputs=lambda p: [clean_snapshot(p)],
    outputs=lambda p: [f"{fits_dir(p)}/index.md"],
)
def inspect_fits(params: Dict):
    """Render one Spline/Kernel figure per selected (Region, Level)."""
    logger = get_logger("inspect_fits")
    src = Path(clean_snapshot(params))
    if not src.exists():
        raise FileNotFoundError(f"Cleaned snapshot not found: {src}. Run `clean` first.")
    df = pd.read_parquet(src)

    pairs = select_series(
        df, inspect_selection(params, "regions"), inspect_selection(params, "levels")
    )
    if not pairs:
        raise ValueError("No (Region, Level) series match the inspect selection")

    out_dir = Path(fits_dir(params))
    lines = ["# Smoothing fits", ""]
    for i, (region, level) in enumerate(pairs, 1):
        sub = df[(df["Region"] == region) & (df["Level"] == level)]
        name = f"{slugify(region)}__{slugify(str(level))}.png"
        plot_fits(sub, region, level, out_dir / name)
        lines.append(f"- [{region}, {level}]({name})")
        logger.info("[%d/%d] Saved %s", i, len(pairs), out_dir / name)

    (out_dir / "index.md").write_text("\n".join(lines) + "\n", encoding="utf-8")
