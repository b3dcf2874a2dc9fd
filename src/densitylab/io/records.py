"""
Decoded MBP records <-> MarketEvent.

Column names follow the databento MBP-1 / MBP-10 CSV layout; only level 0
is read. Extra columns (other levels, symbol, publisher_id, ...) are ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from densitylab.types import ACTIONS, SIDES, MarketEvent

# MarketEvent field -> record column
LEVEL0_COLUMNS = {
    "bid_px": "bid_px_00",
    "ask_px": "ask_px_00",
    "bid_sz": "bid_sz_00",
    "ask_sz": "ask_sz_00",
    "bid_ct": "bid_ct_00",
    "ask_ct": "ask_ct_00",
}

COLS_REQUIRED = ["action", "side", "size", *LEVEL0_COLUMNS.values()]
COLS_OPTIONAL = ["price", "ts_event", "sequence"]

INT_FIELDS = ("size", "bid_sz", "ask_sz", "bid_ct", "ask_ct", "ts_event", "sequence")


def _assert_cols(df: pd.DataFrame, required: Iterable[str]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(
            "MBP records are missing expected columns:\n"
            f"- Missing: {missing}\n"
            f"- Available: {list(df.columns)}\n"
        )


def _assert_codes(values: pd.Series, allowed: Sequence[str], name: str) -> None:
    bad = sorted(set(values.unique()) - set(allowed))
    if bad:
        raise ValueError(f"Unknown {name} codes {bad}; expected one of {list(allowed)}")


def events_from_frame(df: pd.DataFrame) -> list[MarketEvent]:
    _assert_cols(df, COLS_REQUIRED)

    d = df.copy()
    d["action"] = d["action"].astype(str).str.strip()
    d["side"] = d["side"].astype(str).str.strip()
    _assert_codes(d["action"], ACTIONS, "action")
    _assert_codes(d["side"], SIDES, "side")

    d = d.rename(columns={v: k for k, v in LEVEL0_COLUMNS.items()})
    for c in COLS_OPTIONAL:
        if c not in d.columns:
            d[c] = 0

    # ts_event can come as an ISO string in pretty-printed exports
    if not pd.api.types.is_numeric_dtype(d["ts_event"]):
        d["ts_event"] = pd.to_datetime(d["ts_event"], utc=True).astype("int64")

    for c in INT_FIELDS:
        d[c] = pd.to_numeric(d[c], errors="coerce").fillna(0).astype("int64")
    for c in ("price", "bid_px", "ask_px"):
        d[c] = pd.to_numeric(d[c], errors="coerce").astype(float)

    fields = ["action", "side", *INT_FIELDS, "price", "bid_px", "ask_px"]
    events: list[MarketEvent] = []
    for r in d[fields].itertuples(index=False):
        events.append(
            MarketEvent(
                action=r.action,
                side=r.side,
                size=int(r.size),
                bid_px=float(r.bid_px),
                bid_sz=int(r.bid_sz),
                bid_ct=int(r.bid_ct),
                ask_px=float(r.ask_px),
                ask_sz=int(r.ask_sz),
                ask_ct=int(r.ask_ct),
                price=float(r.price),
                ts_event=int(r.ts_event),
                sequence=int(r.sequence),
            )
        )
    return events


def load_events(path: str | Path) -> list[MarketEvent]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing {p}. Export decoded MBP records to CSV first.")
    return events_from_frame(pd.read_csv(p, dtype={"action": str, "side": str}))


def events_to_frame(events: Sequence[MarketEvent]) -> pd.DataFrame:
    rows = []
    for e in events:
        row = {
            "ts_event": e.ts_event,
            "action": e.action,
            "side": e.side,
            "price": e.price,
            "size": e.size,
            "sequence": e.sequence,
        }
        for field_name, col in LEVEL0_COLUMNS.items():
            row[col] = getattr(e, field_name)
        rows.append(row)
    return pd.DataFrame(rows, columns=["ts_event", "action", "side", "price", "size", "sequence", *LEVEL0_COLUMNS.values()])
