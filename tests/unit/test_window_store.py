from __future__ import annotations

import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.numbers.kinds import NumberKind
from app.numbers.store import WindowStore
from app.numbers.window import window_average
from app.utils.errors import InvalidKindError, InvalidWindowSizeError


def test_merge_evicts_fifo() -> None:
    store = WindowStore()
    result = store.merge(NumberKind.PRIME, 3, [1, 2, 3, 4])
    assert result.prev_state == []
    assert result.curr_state == [2, 3, 4]
    assert result.numbers == [1, 2, 3, 4]
    assert result.average == 3.0


def test_merge_existing_value_is_noop() -> None:
    store = WindowStore()
    store.merge(NumberKind.EVEN, 3, [1, 2, 3])
    result = store.merge(NumberKind.EVEN, 3, [2])
    assert result.prev_state == [1, 2, 3]
    assert result.curr_state == [1, 2, 3]


def test_merge_keeps_duplicates_in_received_numbers() -> None:
    store = WindowStore()
    result = store.merge(NumberKind.FIBONACCI, 10, [1, 1, 2, 3, 5, 8])
    assert result.numbers == [1, 1, 2, 3, 5, 8]
    assert result.curr_state == [1, 2, 3, 5, 8]
    assert result.average == 3.8


def test_prev_state_matches_previous_curr_state() -> None:
    store = WindowStore()
    rng = random.Random(7)
    previous: list[int] = []
    for _ in range(50):
        capacity = rng.randint(1, 6)
        incoming = [rng.randint(0, 12) for _ in range(rng.randint(0, 8))]
        result = store.merge(NumberKind.RANDOM, capacity, incoming)
        assert result.prev_state == previous
        assert len(result.curr_state) <= capacity
        assert len(set(result.curr_state)) == len(result.curr_state)
        assert result.average == window_average(result.curr_state)
        previous = result.curr_state


def test_smaller_capacity_trims_oldest_even_without_new_values() -> None:
    store = WindowStore()
    store.merge(NumberKind.PRIME, 5, [2, 3, 5, 7, 11])
    result = store.merge(NumberKind.PRIME, 2, [])
    assert result.prev_state == [2, 3, 5, 7, 11]
    assert result.curr_state == [7, 11]
    assert result.average == 9.0


def test_empty_merge_on_empty_window_averages_zero() -> None:
    store = WindowStore()
    result = store.merge(NumberKind.EVEN, 10, [])
    assert result.curr_state == []
    assert result.average == 0


def test_kinds_are_independent() -> None:
    store = WindowStore()
    store.merge(NumberKind.PRIME, 10, [2, 3])
    store.merge(NumberKind.EVEN, 10, [4])
    assert store.snapshot(NumberKind.PRIME) == [2, 3]
    assert store.snapshot(NumberKind.EVEN) == [4]
    assert store.snapshot(NumberKind.RANDOM) == []


def test_reset_clears_one_or_all_windows() -> None:
    store = WindowStore()
    store.merge(NumberKind.PRIME, 10, [2, 3])
    store.merge(NumberKind.EVEN, 10, [4])
    store.reset(NumberKind.PRIME)
    assert store.snapshot(NumberKind.PRIME) == []
    assert store.snapshot(NumberKind.EVEN) == [4]
    store.reset()
    assert store.snapshot(NumberKind.EVEN) == []


@pytest.mark.parametrize("capacity", [0, -1, True, 2.5, "3"])
def test_merge_rejects_invalid_capacity(capacity) -> None:
    store = WindowStore()
    with pytest.raises(InvalidWindowSizeError):
        store.merge(NumberKind.PRIME, capacity, [1])
    assert store.snapshot(NumberKind.PRIME) == []


def test_merge_rejects_unknown_kind() -> None:
    store = WindowStore(kinds=[NumberKind.PRIME])
    with pytest.raises(InvalidKindError):
        store.merge(NumberKind.EVEN, 3, [1])
    with pytest.raises(InvalidKindError):
        store.merge("x", 3, [1])  # type: ignore[arg-type]


def test_concurrent_merges_keep_invariants() -> None:
    store = WindowStore()
    capacity = 5
    barrier = threading.Barrier(8)
    results = []
    results_lock = threading.Lock()

    def _worker(seed: int) -> None:
        rng = random.Random(seed)
        barrier.wait()
        for _ in range(200):
            incoming = [rng.randint(0, 20) for _ in range(rng.randint(1, 6))]
            result = store.merge(NumberKind.RANDOM, capacity, incoming)
            with results_lock:
                results.append(result)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(_worker, range(8)))

    assert len(results) == 8 * 200
    for result in results:
        assert len(result.curr_state) <= capacity
        assert len(set(result.curr_state)) == len(result.curr_state)

    final = store.snapshot(NumberKind.RANDOM)
    assert len(final) <= capacity
    assert len(set(final)) == len(final)
