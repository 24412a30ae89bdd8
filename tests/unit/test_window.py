from __future__ import annotations

from app.numbers.window import BoundedUniqueWindow, window_average


def test_push_skips_values_already_present() -> None:
    window = BoundedUniqueWindow([1, 2, 3])
    assert window.push(2) is False
    assert window.snapshot() == [1, 2, 3]


def test_push_with_capacity_evicts_oldest() -> None:
    window = BoundedUniqueWindow()
    for value in (1, 2, 3, 4):
        window.push(value, capacity=3)
    assert window.snapshot() == [2, 3, 4]
    assert 1 not in window


def test_evicted_value_can_return() -> None:
    window = BoundedUniqueWindow([1, 2])
    window.push(3, capacity=2)
    assert window.snapshot() == [2, 3]
    assert window.push(1, capacity=2) is True
    assert window.snapshot() == [3, 1]


def test_trim_returns_evicted_in_fifo_order() -> None:
    window = BoundedUniqueWindow([5, 6, 7, 8, 9])
    assert window.trim(2) == [5, 6, 7]
    assert window.snapshot() == [8, 9]
    assert window.trim(4) == []


def test_snapshot_is_a_copy() -> None:
    window = BoundedUniqueWindow([1])
    snapshot = window.snapshot()
    snapshot.append(99)
    assert window.snapshot() == [1]
    assert len(window) == 1


def test_clear_empties_membership() -> None:
    window = BoundedUniqueWindow([1, 2])
    window.clear()
    assert len(window) == 0
    assert window.push(1) is True


def test_average_rounds_to_two_decimals() -> None:
    assert window_average([1, 2, 2]) == 1.67
    assert window_average([2, 4, 6, 8, 10]) == 6.0
    assert BoundedUniqueWindow([1, 2]).average() == 1.5


def test_average_of_empty_window_is_zero() -> None:
    assert window_average([]) == 0
    assert BoundedUniqueWindow().average() == 0
