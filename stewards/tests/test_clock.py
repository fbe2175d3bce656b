import pytest

from stewards.clock import ManualClock, SystemClock


def test_manual_clock_only_moves_forward():
    c = ManualClock(100)
    assert c.now() == 100
    assert c.advance(5) == 105
    assert c.set(105) == 105
    with pytest.raises(ValueError):
        c.advance(-1)
    with pytest.raises(ValueError):
        c.set(104)


def test_system_clock_is_non_decreasing():
    c = SystemClock()
    readings = [c.now() for _ in range(50)]
    assert readings == sorted(readings)
    assert readings[0] > 1_600_000_000
