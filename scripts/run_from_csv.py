# scripts/run_from_csv.py
"""
Replay a decoded MBP CSV through one DensityTracker.

Each input row is written back with up to four extra columns
(bid_vol_ct, ask_vol_ct, buy_vol_ct, sell_vol_ct); a column stays empty
while its window has no values yet.

Usage:
    python scripts/run_from_csv.py data/mbp.csv [--out data/mbp_density.csv] [--window 200]
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import pandas as pd

from densitylab.export import DENSITY_KEYS, RATIO_KEYS, write_metrics
from densitylab.io.records import events_from_frame
from densitylab.metrics.density import DensityTracker, TrackerParams


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Add rolling liquidity densities to a decoded MBP CSV.")
    ap.add_argument("csv", type=Path, help="decoded MBP-1 / MBP-10 records")
    ap.add_argument("--out", type=Path, default=None, help="output CSV (default: <csv>_density.csv)")
    ap.add_argument("--window", type=int, default=200, help="rolling window size")
    ap.add_argument("--density-names", action="store_true", help="use *_density column names instead of *_vol_ct")
    ap.add_argument("--debug", action="store_true")
    return ap.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.csv.exists():
        raise FileNotFoundError(f"Missing {args.csv}")

    raw = pd.read_csv(args.csv, dtype={"action": str, "side": str})
    events = events_from_frame(raw)
    keys = DENSITY_KEYS if args.density_names else RATIO_KEYS

    tracker = DensityTracker(TrackerParams(max_values=args.window))
    rows = []
    for record, event in zip(raw.to_dict(orient="records"), events):
        tracker.process(event)
        # same shape as the JSON map export: current window means, empty windows skipped
        rows.append(write_metrics(record, tracker.metrics(), keys))

    out_path = args.out or args.csv.with_name(f"{args.csv.stem}_density.csv")
    pd.DataFrame(rows).to_csv(out_path, index=False)

    print(f"[run_from_csv] events={len(events)} stats={tracker.stats.as_dict()}")
    print(f"Saved: {out_path}")


if __name__ == "__main__":
    main()
