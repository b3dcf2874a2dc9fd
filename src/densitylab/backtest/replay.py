from __future__ import annotations

from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

from densitylab.export import Exporter, StructuredCopy
from densitylab.metrics.density import DensityTracker, TrackerParams
from densitylab.sim.stream import StreamParams, SyntheticMBPStream
from densitylab.types import MarketEvent

DENSITY_COLS = ["bid_density", "ask_density", "buy_density", "sell_density"]


def run_replay(
    events: Iterable[MarketEvent],
    tracker: Optional[DensityTracker] = None,
    exporter: Optional[Exporter] = None,
    params: Optional[TrackerParams] = None,
) -> dict:
    """
    Feed events, in order, through one tracker and export every result.

    The tracker is injected by the caller (or built from `params`), so one
    instrument's stream always goes through one instance.

    Returns exported rows + a DataFrame of the densities + tracker stats.
    """
    trk = tracker or DensityTracker(params)
    exp = exporter or StructuredCopy()

    rows: list[Any] = []
    records: list[dict] = []

    for event in events:
        metrics = trk.process(event)
        rows.append(exp.export(event, metrics))

        bid_ratio, ask_ratio = trk.last_ratios
        records.append(
            {
                "ts_event": event.ts_event,
                "sequence": event.sequence,
                "action": event.action,
                "side": event.side,
                "size": event.size,
                "bid_ratio": bid_ratio,
                "ask_ratio": ask_ratio,
                **metrics.as_dict(),
            }
        )

    return {
        "densities": rows,
        "frame": densities_frame(records),
        "final": trk.metrics(),
        "stats": trk.stats.as_dict(),
    }


def densities_frame(records: list[dict]) -> pd.DataFrame:
    cols = ["ts_event", "sequence", "action", "side", "size", "bid_ratio", "ask_ratio", *DENSITY_COLS]
    df = pd.DataFrame(records, columns=cols)
    for c in ["bid_ratio", "ask_ratio", *DENSITY_COLS]:
        df[c] = pd.to_numeric(df[c], errors="coerce").astype(float)
    return df


def summarize_densities(frame: pd.DataFrame) -> dict[str, dict[str, float]]:
    """mean / p10 / p50 / p90 per density column, ignoring empty outputs."""
    out: dict[str, dict[str, float]] = {}
    for c in DENSITY_COLS:
        a = frame[c].to_numpy(dtype=float) if c in frame.columns else np.array([], dtype=float)
        a = a[~np.isnan(a)]
        if a.size == 0:
            out[c] = {"mean": float("nan"), "p10": float("nan"), "p50": float("nan"), "p90": float("nan")}
            continue
        out[c] = {
            "mean": float(a.mean()),
            "p10": float(np.quantile(a, 0.10)),
            "p50": float(np.quantile(a, 0.50)),
            "p90": float(np.quantile(a, 0.90)),
        }
    return out


def run_synthetic(
    n_steps: int = 2_000,
    seed: int = 0,
    stream_params: Optional[StreamParams] = None,
    params: Optional[TrackerParams] = None,
) -> dict:
    """Generate one synthetic stream and replay it through a fresh tracker."""
    sp = stream_params or StreamParams()
    events = SyntheticMBPStream(sp, seed=seed).generate(n_steps)
    out = run_replay(events, params=params)
    out["events"] = events
    return out
