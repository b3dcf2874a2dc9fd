from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from densitylab.types import (
    ACTION_ADD,
    ACTION_CANCEL,
    ACTION_CLEAR,
    ACTION_FILL,
    ACTION_TRADE,
    SIDE_ASK,
    SIDE_BID,
    SIDE_NONE,
    Action,
    MarketEvent,
    Side,
)


@dataclass
class StreamParams:
    """
    Synthetic single-instrument MBP stream (top of book only).

    Each step emits one of:
    - a quote update: one order added to / cancelled from a best level
    - a trade print followed by the book update it caused
      (partial fill at the same price, or a sweep that moves the level)
    - a book clear followed by the two adds that rebuild the top of book

    Trades carry the pre-trade book, the follow-up update the post-trade book,
    which is the order the tracker reconciles in.
    """
    mid0: float = 100.0
    tick: float = 0.25

    # Resting liquidity at a fresh level
    orders_mean: float = 8.0
    order_size_mean: float = 12.0

    p_trade: float = 0.25
    p_sweep: float = 0.30             # trade takes the whole level
    p_double_trade: float = 0.05      # second print before the book update
    p_clear: float = 0.005

    step_ns: int = 1_000_000


class SyntheticMBPStream:
    """Seeded generator of MarketEvents; same seed -> same stream."""

    def __init__(self, params: StreamParams, seed: int = 0) -> None:
        self.p = params
        self.seed = seed
        self.reset()

    def reset(self) -> None:
        self.rng = np.random.default_rng(self.seed)
        self.t = 0
        self.sequence = 0

        half = 0.5 * self.p.tick
        self.bid_px = float(self.p.mid0 - half)
        self.ask_px = float(self.p.mid0 + half)
        self.bid_ct, self.bid_sz = self._fresh_level()
        self.ask_ct, self.ask_sz = self._fresh_level()

    def _fresh_level(self) -> tuple[int, int]:
        ct = 1 + int(self.rng.poisson(self.p.orders_mean - 1.0))
        sz = sum(self._order_size() for _ in range(ct))
        return ct, sz

    def _order_size(self) -> int:
        return 1 + int(self.rng.poisson(self.p.order_size_mean - 1.0))

    def _emit(self, action: Action, side: Side, size: int = 0, price: float = 0.0) -> MarketEvent:
        ev = MarketEvent(
            action=action,
            side=side,
            size=int(size),
            bid_px=self.bid_px,
            bid_sz=self.bid_sz,
            bid_ct=self.bid_ct,
            ask_px=self.ask_px,
            ask_sz=self.ask_sz,
            ask_ct=self.ask_ct,
            price=float(price),
            ts_event=self.t * self.p.step_ns,
            sequence=self.sequence,
        )
        self.sequence += 1
        return ev

    # -----------------------------
    # Step kinds
    # -----------------------------
    def _quote_update(self) -> list[MarketEvent]:
        side: Side = SIDE_BID if self.rng.random() < 0.5 else SIDE_ASK
        add = self.rng.random() < 0.55
        ct = self.bid_ct if side == SIDE_BID else self.ask_ct

        if add or ct <= 1:
            size = self._order_size()
            if side == SIDE_BID:
                self.bid_ct += 1
                self.bid_sz += size
                px = self.bid_px
            else:
                self.ask_ct += 1
                self.ask_sz += size
                px = self.ask_px
            return [self._emit(ACTION_ADD, side, size, px)]

        # the orders left behind keep at least one lot each
        if side == SIDE_BID:
            size = min(self._order_size(), self.bid_sz - (self.bid_ct - 1))
            self.bid_ct -= 1
            self.bid_sz -= size
            px = self.bid_px
        else:
            size = min(self._order_size(), self.ask_sz - (self.ask_ct - 1))
            self.ask_ct -= 1
            self.ask_sz -= size
            px = self.ask_px
        return [self._emit(ACTION_CANCEL, side, size, px)]

    def _trade(self) -> list[MarketEvent]:
        # side is the resting side that was hit
        side: Side = SIDE_ASK if self.rng.random() < 0.5 else SIDE_BID
        lvl_ct = self.bid_ct if side == SIDE_ASK else self.ask_ct
        lvl_sz = self.bid_sz if side == SIDE_ASK else self.ask_sz
        sweep = lvl_ct <= 1 or self.rng.random() < self.p.p_sweep

        if sweep:
            n_orders, size = lvl_ct, lvl_sz
        else:
            n_orders = int(self.rng.integers(1, lvl_ct))
            left = lvl_ct - n_orders
            size = max(n_orders, min(lvl_sz - left, int(round(n_orders * lvl_sz / lvl_ct))))

        px = self.bid_px if side == SIDE_ASK else self.ask_px
        out = [self._emit(ACTION_TRADE, side, size, px)]

        if self.rng.random() < self.p.p_double_trade:
            extra = self._order_size()
            out.append(self._emit(ACTION_TRADE, side, extra, px))

        # book update caused by the print
        if side == SIDE_ASK:
            if sweep:
                self.bid_px = float(self.bid_px - self.p.tick)
                self.bid_ct, self.bid_sz = self._fresh_level()
            else:
                self.bid_ct -= n_orders
                self.bid_sz -= size
        else:
            if sweep:
                self.ask_px = float(self.ask_px + self.p.tick)
                self.ask_ct, self.ask_sz = self._fresh_level()
            else:
                self.ask_ct -= n_orders
                self.ask_sz -= size

        out.append(self._emit(ACTION_FILL if not sweep else ACTION_CANCEL, side, size, px))
        return out

    def _clear(self) -> list[MarketEvent]:
        mid = 0.5 * (self.bid_px + self.ask_px)
        self.bid_px = self.ask_px = 0.0
        self.bid_sz = self.ask_sz = 0
        self.bid_ct = self.ask_ct = 0
        out = [self._emit(ACTION_CLEAR, SIDE_NONE)]

        # rebuilt book is published as one add per side, both showing the full top
        half = 0.5 * self.p.tick
        self.bid_px = float(mid - half)
        self.ask_px = float(mid + half)
        self.bid_ct, self.bid_sz = self._fresh_level()
        self.ask_ct, self.ask_sz = self._fresh_level()
        out.append(self._emit(ACTION_ADD, SIDE_BID, self.bid_sz, self.bid_px))
        out.append(self._emit(ACTION_ADD, SIDE_ASK, self.ask_sz, self.ask_px))
        return out

    def step(self) -> list[MarketEvent]:
        u = self.rng.random()
        if u < self.p.p_clear:
            events = self._clear()
        elif u < self.p.p_clear + self.p.p_trade:
            events = self._trade()
        else:
            events = self._quote_update()
        self.t += 1
        return events

    def generate(self, n_steps: int) -> list[MarketEvent]:
        events: list[MarketEvent] = []
        for _ in range(n_steps):
            events.extend(self.step())
        return events
