# scripts/run_density.py
"""
Density sweep over synthetic MBP streams.

For each seed we generate one stream, replay it through a fresh
DensityTracker and keep:
- the per-event density series (first seed only, for the report plots)
- the final rolling means + tracker counters (every seed)

Outputs:
- reports/density_series.csv
- reports/density_summary.csv
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import numpy as np
import pandas as pd

from densitylab.backtest.replay import DENSITY_COLS, run_synthetic, summarize_densities
from densitylab.metrics.density import TrackerParams
from densitylab.sim.stream import StreamParams


# -----------------------------
# Experiment configuration
# -----------------------------
SEEDS = list(range(20))
N_STEPS = 5_000
MAX_VALUES = 200
P_SWEEP_GRID = [0.10, 0.30, 0.60]

REPORTS_DIR = Path("reports")
OUT_SERIES = REPORTS_DIR / "density_series.csv"
OUT_SUMMARY = REPORTS_DIR / "density_summary.csv"


def mean(x: List[float]) -> float:
    a = np.asarray(x, dtype=float)
    a = a[~np.isnan(a)]
    return float(a.mean()) if a.size else float("nan")


def _nan_if_none(v):
    return float("nan") if v is None else float(v)


def main() -> None:
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)

    tp = TrackerParams(max_values=MAX_VALUES)
    rows: List[Dict[str, float]] = []
    series: pd.DataFrame | None = None

    for p_sweep in P_SWEEP_GRID:
        sp = StreamParams(p_sweep=float(p_sweep))
        finals: Dict[str, List[float]] = {c: [] for c in DENSITY_COLS}
        collisions: List[float] = []
        clears: List[float] = []

        for seed in SEEDS:
            out = run_synthetic(n_steps=N_STEPS, seed=seed, stream_params=sp, params=tp)
            for c, v in out["final"].as_dict().items():
                finals[c].append(_nan_if_none(v))
            collisions.append(float(out["stats"]["collisions"]))
            clears.append(float(out["stats"]["clears_dropped"]))

            if series is None:
                series = out["frame"].assign(p_sweep=float(p_sweep), seed=seed)
                per_event = summarize_densities(out["frame"])
                print(f"[density] seed={seed} p_sweep={p_sweep:.2f} per-event stats: {per_event}")

        row: Dict[str, float] = {"p_sweep": float(p_sweep), "n_seeds": float(len(SEEDS))}
        for c in DENSITY_COLS:
            row[f"{c}_mean"] = mean(finals[c])
        row["collisions_mean"] = mean(collisions)
        row["clears_dropped_mean"] = mean(clears)
        rows.append(row)

    df = pd.DataFrame(rows).sort_values("p_sweep").reset_index(drop=True)
    df.to_csv(OUT_SUMMARY, index=False)
    if series is not None:
        series.to_csv(OUT_SERIES, index=False)

    print("\n=== Density sweep summary ===")
    print(df.to_string(index=False))

    print(f"\nSaved: {OUT_SUMMARY}")
    print(f"Saved: {OUT_SERIES}")


if __name__ == "__main__":
    main()
