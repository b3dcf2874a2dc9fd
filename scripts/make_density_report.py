"""
make_density_report.py

Build a markdown report + figures from reports/density_series.csv and
reports/density_summary.csv (written by scripts/run_density.py).

We plot:
- the four rolling densities over the event index (one stream)
- the instantaneous bid / ask ratios that fed the ratio windows
- final densities vs p_sweep across seeds
and write reports/DENSITY_REPORT.md
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt


REPORTS_DIR = Path("reports")
FIG_DIR = REPORTS_DIR / "figures"
SERIES_CSV = REPORTS_DIR / "density_series.csv"
SUMMARY_CSV = REPORTS_DIR / "density_summary.csv"
OUT_MD = REPORTS_DIR / "DENSITY_REPORT.md"

DENSITY_COLS = ["bid_density", "ask_density", "buy_density", "sell_density"]

COLS_SERIES = ["sequence", "action", "side", "bid_ratio", "ask_ratio", *DENSITY_COLS]
COLS_SUMMARY = ["p_sweep", *[f"{c}_mean" for c in DENSITY_COLS], "collisions_mean", "clears_dropped_mean"]


def _assert_cols(df: pd.DataFrame, required: Iterable[str], name: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(
            f"{name} is missing expected columns:\n"
            f"- Missing: {missing}\n"
            f"- Available: {list(df.columns)}\n"
        )


def _load(path: Path, required: list[str]) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Missing {path}. Run scripts/run_density.py first.")

    df = pd.read_csv(path)
    _assert_cols(df, required, path.name)
    for c in required:
        if c not in ("action", "side"):
            df[c] = pd.to_numeric(df[c], errors="coerce")
    return df


def _plot_series(df: pd.DataFrame, cols: list[str], title: str, ylabel: str, out_path: Path) -> None:
    fig, ax = plt.subplots(figsize=(11, 5))
    x = np.arange(len(df))
    for c in cols:
        ax.plot(x, df[c].to_numpy(dtype=float), label=c, linewidth=1.0)

    ax.set_title(title)
    ax.set_xlabel("event index")
    ax.set_ylabel(ylabel)
    ax.legend(loc="best")

    fig.tight_layout()
    fig.savefig(out_path, dpi=180)
    plt.close(fig)


def _plot_ratios(df: pd.DataFrame, out_path: Path) -> None:
    fig, ax = plt.subplots(figsize=(11, 5))
    for c, marker in (("bid_ratio", "v"), ("ask_ratio", "^")):
        d = df[np.isfinite(df[c].to_numpy(dtype=float))]
        ax.scatter(d.index.to_numpy(), d[c].to_numpy(dtype=float), s=6, marker=marker, label=c)

    ax.set_title("Per-trade consumed size / consumed orders")
    ax.set_xlabel("event index")
    ax.set_ylabel("ratio")
    ax.legend(loc="best")

    fig.tight_layout()
    fig.savefig(out_path, dpi=180)
    plt.close(fig)


def _plot_summary(df: pd.DataFrame, out_path: Path) -> None:
    fig, ax = plt.subplots(figsize=(8, 4))
    for c in DENSITY_COLS:
        ax.plot(df["p_sweep"].to_numpy(dtype=float), df[f"{c}_mean"].to_numpy(dtype=float), marker="o", label=c)

    ax.set_title("Final rolling densities vs sweep probability (mean over seeds)")
    ax.set_xlabel("p_sweep")
    ax.set_ylabel("density")
    ax.legend(loc="best")

    fig.tight_layout()
    fig.savefig(out_path, dpi=180)
    plt.close(fig)


def _fmt(v: float) -> str:
    return "n/a" if not np.isfinite(v) else f"{v:.4f}"


def _write_report(series: pd.DataFrame, summary: pd.DataFrame, figures: list[Path]) -> None:
    n_trades = int((series["action"] == "T").sum())
    n_bid = int(np.isfinite(series["bid_ratio"].to_numpy(dtype=float)).sum())
    n_ask = int(np.isfinite(series["ask_ratio"].to_numpy(dtype=float)).sum())
    last = series.iloc[-1] if len(series) else None

    lines: list[str] = []
    lines.append("# Density Report\n")
    lines.append(f"Artifacts generated from `{SERIES_CSV.as_posix()}` and `{SUMMARY_CSV.as_posix()}`.\n")
    lines.append("## What this shows\n")
    lines.append(
        "- `bid_density` / `ask_density`: rolling mean of consumed size per consumed order at the best level\n"
        "- `buy_density` / `sell_density`: rolling mean of raw trade size by aggressor direction\n"
    )

    lines.append("## Single stream\n")
    lines.append(f"- Events: {len(series)}")
    lines.append(f"- Trades: {n_trades}")
    lines.append(f"- Bid ratios recorded: {n_bid}")
    lines.append(f"- Ask ratios recorded: {n_ask}\n")
    if last is not None:
        for c in DENSITY_COLS:
            lines.append(f"- Last `{c}`: {_fmt(float(last[c]))}")
        lines.append("")

    lines.append("## Sweep summary\n")
    lines.append("```\n")
    lines.append(summary.to_string(index=False))
    lines.append("\n```\n")

    lines.append("## Figures\n")
    for p in figures:
        lines.append(f"- ![{p.stem}](reports/figures/{p.name})")

    OUT_MD.write_text("\n".join(lines) + "\n", encoding="utf-8")


def main() -> None:
    FIG_DIR.mkdir(parents=True, exist_ok=True)
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)

    series = _load(SERIES_CSV, COLS_SERIES).reset_index(drop=True)
    summary = _load(SUMMARY_CSV, COLS_SUMMARY).sort_values("p_sweep").reset_index(drop=True)

    figures = [
        FIG_DIR / "density_ratio_series.png",
        FIG_DIR / "density_size_series.png",
        FIG_DIR / "density_instant_ratios.png",
        FIG_DIR / "density_vs_p_sweep.png",
    ]
    _plot_series(series, ["bid_density", "ask_density"], "Rolling bid / ask density", "size per order", figures[0])
    _plot_series(series, ["buy_density", "sell_density"], "Rolling buy / sell trade size", "size", figures[1])
    _plot_ratios(series, figures[2])
    _plot_summary(summary, figures[3])

    _write_report(series, summary, figures)

    print(f"Saved figures in: {FIG_DIR.as_posix()}")
    print(f"Saved report: {OUT_MD.as_posix()}")


if __name__ == "__main__":
    main()
