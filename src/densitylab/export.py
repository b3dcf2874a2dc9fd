from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, MutableMapping, NamedTuple, Optional, Protocol

from densitylab.types import DerivedMetrics, MarketEvent


class DensityKeys(NamedTuple):
    """Output names for the bid, ask, buy and sell densities."""
    bid: str
    ask: str
    buy: str
    sell: str


RATIO_KEYS = DensityKeys("bid_vol_ct", "ask_vol_ct", "buy_vol_ct", "sell_vol_ct")
DENSITY_KEYS = DensityKeys("bid_density", "ask_density", "buy_density", "sell_density")


@dataclass(frozen=True)
class DensityEvent:
    """Input event enriched with the densities computed after it."""
    event: MarketEvent
    initial: bool
    bid_density: Optional[float] = None
    ask_density: Optional[float] = None
    buy_density: Optional[float] = None
    sell_density: Optional[float] = None

    @property
    def metrics(self) -> DerivedMetrics:
        return DerivedMetrics(
            bid_density=self.bid_density,
            ask_density=self.ask_density,
            buy_density=self.buy_density,
            sell_density=self.sell_density,
        )


class Exporter(Protocol):
    """Exporter interface: shapes one (event, metrics) pair for the caller."""
    def export(self, event: MarketEvent, metrics: DerivedMetrics) -> Any:
        ...


@dataclass
class StructuredCopy:
    """
    Return a DensityEvent carrying the event plus the four densities.

    `initial` is caller-defined and copied as-is onto every output.
    """
    initial: bool = False

    def export(self, event: MarketEvent, metrics: DerivedMetrics) -> DensityEvent:
        return DensityEvent(
            event=event,
            initial=self.initial,
            bid_density=metrics.bid_density,
            ask_density=metrics.ask_density,
            buy_density=metrics.buy_density,
            sell_density=metrics.sell_density,
        )


@dataclass
class InPlaceMapWrite:
    """
    Write the available densities into a caller-owned mapping.

    Absent densities are skipped, so keys already in the map are left alone.
    """
    target: MutableMapping[str, Any] = field(default_factory=dict)
    keys: DensityKeys = RATIO_KEYS

    def export(self, event: MarketEvent, metrics: DerivedMetrics) -> MutableMapping[str, Any]:
        return write_metrics(self.target, metrics, self.keys)


def write_metrics(
    target: MutableMapping[str, Any],
    metrics: DerivedMetrics,
    keys: DensityKeys = RATIO_KEYS,
) -> MutableMapping[str, Any]:
    pairs = (
        (keys.bid, metrics.bid_density),
        (keys.ask, metrics.ask_density),
        (keys.buy, metrics.buy_density),
        (keys.sell, metrics.sell_density),
    )
    for key, value in pairs:
        if value is not None:
            target[key] = float(value)
    return target
