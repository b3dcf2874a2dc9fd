from densitylab.export import (
    DENSITY_KEYS,
    RATIO_KEYS,
    InPlaceMapWrite,
    StructuredCopy,
    write_metrics,
)
from densitylab.types import DerivedMetrics, MarketEvent


EVENT = MarketEvent(
    action="T", side="A", size=12,
    bid_px=100.0, bid_sz=50, bid_ct=5,
    ask_px=100.25, ask_sz=40, ask_ct=4,
)


def test_structured_copy_carries_event_and_densities() -> None:
    m = DerivedMetrics(bid_density=15.0, sell_density=12.0)
    out = StructuredCopy().export(EVENT, m)

    assert out.event is EVENT
    assert out.initial is False
    assert out.bid_density == 15.0
    assert out.ask_density is None
    assert out.metrics == m


def test_structured_copy_initial_is_caller_defined() -> None:
    out = StructuredCopy(initial=True).export(EVENT, DerivedMetrics.empty())
    assert out.initial is True


def test_map_write_skips_empty_windows() -> None:
    target = {"action": "T", "ask_vol_ct": 3.0}
    exp = InPlaceMapWrite(target=target)
    out = exp.export(EVENT, DerivedMetrics(bid_density=15.0, buy_density=7.5))

    assert out is target
    assert target == {"action": "T", "ask_vol_ct": 3.0, "bid_vol_ct": 15.0, "buy_vol_ct": 7.5}
    assert "sell_vol_ct" not in target


def test_map_write_custom_keys() -> None:
    out = write_metrics({}, DerivedMetrics(1.0, 2.0, 3.0, 4.0), DENSITY_KEYS)
    assert out == {"bid_density": 1.0, "ask_density": 2.0, "buy_density": 3.0, "sell_density": 4.0}
    assert RATIO_KEYS.sell == "sell_vol_ct"
