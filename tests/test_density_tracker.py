import pytest

from densitylab.metrics.density import (
    DensityTracker,
    TrackerParams,
    consumed_at_level,
    density_ratio,
)
from densitylab.types import DerivedMetrics, MarketEvent


def ev(action: str, side: str = "N", size: int = 0, **book) -> MarketEvent:
    top = dict(bid_px=100.0, bid_sz=100, bid_ct=10, ask_px=100.25, ask_sz=80, ask_ct=8)
    top.update(book)
    return MarketEvent(action=action, side=side, size=size, **top)


def test_same_price_bid_consumption() -> None:
    trk = DensityTracker()
    trk.process(ev("T", "A", size=60, bid_px=100.0, bid_sz=100, bid_ct=10))
    out = trk.process(ev("C", "B", bid_px=100.0, bid_sz=40, bid_ct=6))

    assert out.bid_density == pytest.approx(15.0)
    assert out.ask_density is None
    assert out.sell_density == pytest.approx(60.0)
    assert out.buy_density is None
    assert trk.last_ratios == (pytest.approx(15.0), None)
    assert trk.state == "idle"


def test_price_change_consumes_whole_level() -> None:
    trk = DensityTracker()
    trk.process(ev("T", "A", size=50, bid_px=100.0, bid_sz=50, bid_ct=5))
    out = trk.process(ev("C", "B", bid_px=99.75, bid_sz=70, bid_ct=9))

    assert out.bid_density == pytest.approx(10.0)


def test_buy_trade_reconciles_ask_side() -> None:
    trk = DensityTracker()
    first = trk.process(ev("T", "B", size=24, ask_px=100.25, ask_sz=80, ask_ct=8))
    assert first.buy_density == pytest.approx(24.0)
    assert first.ask_density is None

    out = trk.process(ev("F", "B", ask_px=100.25, ask_sz=56, ask_ct=6))
    assert out.ask_density == pytest.approx(12.0)
    assert out.bid_density is None
    assert out.sell_density is None


def test_trade_after_trade_is_empty_and_replaces_pending() -> None:
    trk = DensityTracker()
    trk.process(ev("T", "A", size=5, bid_sz=100, bid_ct=10))
    second = ev("T", "B", size=7, ask_sz=80, ask_ct=8)
    out = trk.process(second)

    assert out == DerivedMetrics.empty()
    assert out.is_empty
    assert trk.pending == second
    assert trk.state == "trade_pending"
    # colliding print does not feed the size windows
    assert len(trk.buy_sizes) == 0
    assert trk.stats.collisions == 1

    # next book update is reconciled against the second trade (ask side)
    out = trk.process(ev("C", "B", ask_sz=60, ask_ct=6))
    assert out.ask_density == pytest.approx(10.0)
    assert out.bid_density is None


def test_clear_drops_pending_trade() -> None:
    trk = DensityTracker()
    trk.process(ev("T", "A", size=5, bid_sz=100, bid_ct=10))
    out = trk.process(ev("R", "N", bid_px=0.0, bid_sz=0, bid_ct=0, ask_px=0.0, ask_sz=0, ask_ct=0))

    assert out.is_empty
    assert trk.pending is None
    assert trk.stats.clears_dropped == 1

    out = trk.process(ev("A", "B", bid_sz=40, bid_ct=4))
    assert out.bid_density is None
    assert out.sell_density == pytest.approx(5.0)


def test_size_increase_saturates_to_no_ratio() -> None:
    trk = DensityTracker()
    trk.process(ev("T", "A", size=3, bid_sz=10, bid_ct=2))
    out = trk.process(ev("A", "B", bid_sz=30, bid_ct=5))

    assert out.bid_density is None
    assert trk.last_ratios == (None, None)
    assert trk.stats.reconciled == 1


def test_ratio_floor_applies() -> None:
    trk = DensityTracker()
    trk.process(ev("T", "A", size=1, bid_sz=201, bid_ct=200))
    out = trk.process(ev("C", "B", bid_sz=200, bid_ct=0))

    assert out.bid_density == pytest.approx(0.01)


def test_quotes_without_trade_keep_windows_untouched() -> None:
    trk = DensityTracker()
    for _ in range(5):
        out = trk.process(ev("A", "B", bid_sz=120, bid_ct=11))
        assert out.is_empty
    assert trk.state == "idle"


def test_means_follow_window_contents() -> None:
    trk = DensityTracker(TrackerParams(max_values=2))
    for size in (10, 20, 30):
        trk.process(ev("T", "A", size=size, bid_sz=100, bid_ct=10))
        trk.process(ev("C", "B", bid_sz=100, bid_ct=10))

    assert trk.sell_sizes.values() == [20, 30]
    assert trk.metrics().sell_density == pytest.approx(25.0)


def test_replay_from_fresh_tracker_is_deterministic() -> None:
    events = [
        ev("T", "A", size=60, bid_sz=100, bid_ct=10),
        ev("C", "B", bid_sz=40, bid_ct=6),
        ev("T", "B", size=8, ask_sz=80, ask_ct=8),
        ev("T", "B", size=9, ask_sz=72, ask_ct=7),
        ev("M", "B", ask_px=100.5, ask_sz=30, ask_ct=3),
        ev("T", "A", size=4, bid_sz=40, bid_ct=6),
        ev("R", "N"),
    ]
    t1, t2 = DensityTracker(), DensityTracker()
    assert [t1.process(e) for e in events] == [t2.process(e) for e in events]


def test_reset_restores_fresh_state() -> None:
    trk = DensityTracker()
    trk.process(ev("T", "A", size=60, bid_sz=100, bid_ct=10))
    trk.reset()

    assert trk.pending is None
    assert trk.metrics().is_empty
    assert trk.stats.events == 0


def test_consumed_at_level_and_ratio_helpers() -> None:
    assert consumed_at_level(100.0, 100, 10, 100.0, 40, 6) == (60, 4)
    assert consumed_at_level(100.0, 10, 2, 100.0, 40, 6) == (0, 0)
    assert consumed_at_level(100.0, 50, 5, 99.75, 40, 6) == (50, 5)

    assert density_ratio(60, 4) == pytest.approx(15.0)
    assert density_ratio(0, 4) is None
    assert density_ratio(60, 0) is None


def test_invalid_params_rejected() -> None:
    with pytest.raises(ValueError):
        TrackerParams(max_values=0)
    with pytest.raises(ValueError):
        TrackerParams(ratio_floor=-1.0)
