from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class MergeResult:
    prev_state: list[int]
    curr_state: list[int]
    numbers: list[int]
    average: float


def window_average(values: Iterable[int]) -> float:
    items = list(values)
    if not items:
        return 0.0
    return round(sum(items) / len(items), 2)


class BoundedUniqueWindow:
    """Insertion-ordered buffer of distinct integers, evicted oldest first.

    Capacity is not stored on the window: callers pass it to ``push`` and
    ``trim`` because each request may ask for a different size.
    """

    def __init__(self, values: Iterable[int] = ()) -> None:
        self._items: deque[int] = deque()
        self._members: set[int] = set()
        for value in values:
            self.push(value)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, value: object) -> bool:
        return value in self._members

    def __iter__(self):
        return iter(self._items)

    def push(self, value: int, capacity: int | None = None) -> bool:
        if value in self._members:
            return False
        self._items.append(value)
        self._members.add(value)
        if capacity is not None and len(self._items) > capacity:
            self.evict_oldest()
        return True

    def evict_oldest(self) -> int:
        value = self._items.popleft()
        self._members.discard(value)
        return value

    def trim(self, capacity: int) -> list[int]:
        evicted: list[int] = []
        while len(self._items) > capacity:
            evicted.append(self.evict_oldest())
        return evicted

    def clear(self) -> None:
        self._items.clear()
        self._members.clear()

    def snapshot(self) -> list[int]:
        return list(self._items)

    def average(self) -> float:
        return window_average(self._items)
