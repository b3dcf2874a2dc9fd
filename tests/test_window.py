import pytest

from densitylab.metrics.window import RollingWindow


def test_empty_window_has_no_mean() -> None:
    w: RollingWindow[float] = RollingWindow(200)
    assert len(w) == 0
    assert w.mean() is None


def test_mean_of_retained_values() -> None:
    w: RollingWindow[float] = RollingWindow(3)
    for v in (1.0, 2.0, 6.0, 10.0):
        w.push(v)

    assert w.values() == [2.0, 6.0, 10.0]
    assert w.mean() == pytest.approx(6.0)


def test_201st_push_evicts_oldest() -> None:
    w: RollingWindow[int] = RollingWindow(200)
    for v in range(200):
        w.push(v)
    assert len(w) == 200
    assert w.values()[0] == 0

    w.push(200)
    assert len(w) == 200
    assert w.values()[0] == 1
    assert w.values()[-1] == 200
    assert w.mean() == pytest.approx(sum(range(1, 201)) / 200)


def test_clear_and_maxlen() -> None:
    w: RollingWindow[int] = RollingWindow(5)
    w.push(4)
    w.clear()
    assert w.maxlen == 5
    assert list(w) == []


def test_invalid_maxlen() -> None:
    with pytest.raises(ValueError):
        RollingWindow(0)
