from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Literal, Optional

# databento MBP action / side codes
Action = Literal["A", "C", "M", "R", "T", "F", "N"]
Side = Literal["B", "A", "N"]

ACTION_ADD: Action = "A"
ACTION_CANCEL: Action = "C"
ACTION_MODIFY: Action = "M"
ACTION_CLEAR: Action = "R"
ACTION_TRADE: Action = "T"
ACTION_FILL: Action = "F"
ACTION_NONE: Action = "N"

SIDE_BID: Side = "B"
SIDE_ASK: Side = "A"
SIDE_NONE: Side = "N"

ACTIONS: tuple[str, ...] = ("A", "C", "M", "R", "T", "F", "N")
SIDES: tuple[str, ...] = ("B", "A", "N")


@dataclass(frozen=True)
class MarketEvent:
    """
    One decoded MBP message: an action plus the top-of-book after it.

    For trades, side is the resting side that was hit:
    - side "A" -> a seller hit the bid
    - side "B" -> a buyer lifted the ask
    """
    action: Action
    side: Side
    size: int
    bid_px: float
    bid_sz: int
    bid_ct: int
    ask_px: float
    ask_sz: int
    ask_ct: int
    price: float = 0.0
    ts_event: int = 0
    sequence: int = 0

    @property
    def is_trade(self) -> bool:
        return self.action == ACTION_TRADE

    @property
    def is_clear(self) -> bool:
        return self.action == ACTION_CLEAR


@dataclass(frozen=True)
class DerivedMetrics:
    """Rolling means of the four density windows (None = window empty)."""
    bid_density: Optional[float] = None
    ask_density: Optional[float] = None
    buy_density: Optional[float] = None
    sell_density: Optional[float] = None

    @classmethod
    def empty(cls) -> "DerivedMetrics":
        return cls()

    @property
    def is_empty(self) -> bool:
        return (
            self.bid_density is None
            and self.ask_density is None
            and self.buy_density is None
            and self.sell_density is None
        )

    def as_dict(self) -> dict[str, Optional[float]]:
        return asdict(self)
