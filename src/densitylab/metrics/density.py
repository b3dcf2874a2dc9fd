from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from densitylab.metrics.window import RollingWindow
from densitylab.types import (
    SIDE_ASK,
    SIDE_BID,
    DerivedMetrics,
    MarketEvent,
)

logger = logging.getLogger(__name__)

TrackerState = Literal["idle", "trade_pending"]


@dataclass
class TrackerParams:
    """
    Density tracker configuration.

    max_values: capacity of each of the four rolling windows
    ratio_floor: lower bound applied to every size/count ratio before it is stored
    """
    max_values: int = 200
    ratio_floor: float = 0.01

    def __post_init__(self) -> None:
        if self.max_values < 1:
            raise ValueError(f"max_values must be >= 1, got {self.max_values}")
        if self.ratio_floor < 0:
            raise ValueError(f"ratio_floor must be >= 0, got {self.ratio_floor}")


@dataclass
class TrackerStats:
    events: int = 0
    trades: int = 0
    reconciled: int = 0
    collisions: int = 0
    clears_dropped: int = 0
    bid_ratios: int = 0
    ask_ratios: int = 0

    def as_dict(self) -> dict[str, int]:
        return dict(self.__dict__)


def consumed_at_level(
    last_px: float,
    last_sz: int,
    last_ct: int,
    cur_px: float,
    cur_sz: int,
    cur_ct: int,
) -> tuple[int, int]:
    """
    Size and order count taken out of one best level between two snapshots.

    Same price: the (saturating) drop in size and count.
    Price moved: the whole previous level is treated as consumed.
    """
    if last_px == cur_px:
        return max(last_sz - cur_sz, 0), max(last_ct - cur_ct, 0)
    return last_sz, last_ct


def density_ratio(size: int, count: int, floor: float = 0.01) -> Optional[float]:
    """Average consumed order size, or None when nothing was consumed."""
    if count > 0 and size > 0:
        return max(size / count, floor)
    return None


class DensityTracker:
    """
    Trade-to-book reconciliation over one instrument's MBP stream.

    A trade is held as pending until the next book update. That update is
    compared with the pending trade's top of book to get the size and order
    count consumed on the side that was hit:
    - trade side "A" (seller hit the bid) -> bid ratio window
    - trade side "B" (buyer lifted the ask) -> ask ratio window

    Trade sizes are kept per aggressor direction (side "B" -> buys,
    side "A" -> sells). Every call returns the rolling means of all four
    windows, or all-empty metrics when a guard suppressed reconciliation.

    Not thread-safe: one tracker per instrument, one sequential caller.
    """

    def __init__(self, params: Optional[TrackerParams] = None) -> None:
        self.params = params or TrackerParams()
        self.reset()

    def reset(self) -> None:
        n = self.params.max_values
        self._pending: Optional[MarketEvent] = None
        self.bid_ratios: RollingWindow[float] = RollingWindow(n)
        self.ask_ratios: RollingWindow[float] = RollingWindow(n)
        self.buy_sizes: RollingWindow[int] = RollingWindow(n)
        self.sell_sizes: RollingWindow[int] = RollingWindow(n)
        self._last_ratios: tuple[Optional[float], Optional[float]] = (None, None)
        self.stats = TrackerStats()

    @property
    def pending(self) -> Optional[MarketEvent]:
        return self._pending

    @property
    def state(self) -> TrackerState:
        return "idle" if self._pending is None else "trade_pending"

    @property
    def last_ratios(self) -> tuple[Optional[float], Optional[float]]:
        """(bid_ratio, ask_ratio) produced by the most recent process() call."""
        return self._last_ratios

    def process(self, event: MarketEvent) -> DerivedMetrics:
        self.stats.events += 1
        self._last_ratios = (None, None)

        if self._pending is not None:
            if event.is_trade:
                # back-to-back trades: no book update in between to reconcile against
                logger.debug("trade collision, dropping pending trade seq=%s", self._pending.sequence)
                self.stats.collisions += 1
                self._pending = event
                return DerivedMetrics.empty()

            if event.is_clear:
                logger.debug("book clear, dropping pending trade seq=%s", self._pending.sequence)
                self.stats.clears_dropped += 1
                self._pending = None
                return DerivedMetrics.empty()

            self._last_ratios = self._reconcile(self._pending, event)
            self._pending = None

        if event.is_trade:
            self._capture(event)

        return self.metrics()

    def metrics(self) -> DerivedMetrics:
        """Current rolling means without consuming an event."""
        return DerivedMetrics(
            bid_density=self.bid_ratios.mean(),
            ask_density=self.ask_ratios.mean(),
            buy_density=self.buy_sizes.mean(),
            sell_density=self.sell_sizes.mean(),
        )

    def _reconcile(
        self, last: MarketEvent, cur: MarketEvent
    ) -> tuple[Optional[float], Optional[float]]:
        floor = self.params.ratio_floor
        bid_ratio: Optional[float] = None
        ask_ratio: Optional[float] = None

        if last.side == SIDE_ASK:
            size, count = consumed_at_level(
                last.bid_px, last.bid_sz, last.bid_ct,
                cur.bid_px, cur.bid_sz, cur.bid_ct,
            )
            bid_ratio = density_ratio(size, count, floor)
            if bid_ratio is not None:
                self.bid_ratios.push(bid_ratio)
                self.stats.bid_ratios += 1

        elif last.side == SIDE_BID:
            size, count = consumed_at_level(
                last.ask_px, last.ask_sz, last.ask_ct,
                cur.ask_px, cur.ask_sz, cur.ask_ct,
            )
            ask_ratio = density_ratio(size, count, floor)
            if ask_ratio is not None:
                self.ask_ratios.push(ask_ratio)
                self.stats.ask_ratios += 1

        self.stats.reconciled += 1
        return bid_ratio, ask_ratio

    def _capture(self, trade: MarketEvent) -> None:
        self._pending = trade
        self.stats.trades += 1
        if trade.side == SIDE_BID:
            self.buy_sizes.push(trade.size)
        elif trade.side == SIDE_ASK:
            self.sell_sizes.push(trade.size)
        logger.debug("captured trade side=%s size=%s seq=%s", trade.side, trade.size, trade.sequence)
