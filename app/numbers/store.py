from __future__ import annotations

import threading
from typing import Iterable

from app.numbers.kinds import NumberKind
from app.numbers.window import BoundedUniqueWindow, MergeResult, window_average
from app.utils.errors import InvalidKindError, InvalidWindowSizeError


class WindowStore:
    """Owns one window per number kind.

    Merges for the same kind are serialized by that kind's lock; different
    kinds never contend. Nothing inside a lock performs I/O, so the store is
    safe to call from the event loop as well as from worker threads.
    """

    def __init__(self, kinds: Iterable[NumberKind] = tuple(NumberKind)) -> None:
        self._windows: dict[NumberKind, BoundedUniqueWindow] = {
            kind: BoundedUniqueWindow() for kind in kinds
        }
        self._locks: dict[NumberKind, threading.Lock] = {
            kind: threading.Lock() for kind in self._windows
        }

    @property
    def kinds(self) -> tuple[NumberKind, ...]:
        return tuple(self._windows)

    def merge(self, kind: NumberKind, capacity: int, incoming: Iterable[int]) -> MergeResult:
        window, lock = self._resolve(kind)
        _check_capacity(capacity)
        numbers = list(incoming)
        with lock:
            prev_state = window.snapshot()
            window.trim(capacity)
            for value in numbers:
                window.push(value, capacity)
            curr_state = window.snapshot()
        return MergeResult(
            prev_state=prev_state,
            curr_state=curr_state,
            numbers=numbers,
            average=window_average(curr_state),
        )

    def snapshot(self, kind: NumberKind) -> list[int]:
        window, lock = self._resolve(kind)
        with lock:
            return window.snapshot()

    def reset(self, kind: NumberKind | None = None) -> None:
        targets = self.kinds if kind is None else (kind,)
        for target in targets:
            window, lock = self._resolve(target)
            with lock:
                window.clear()

    def _resolve(self, kind: NumberKind) -> tuple[BoundedUniqueWindow, threading.Lock]:
        try:
            return self._windows[kind], self._locks[kind]
        except (KeyError, TypeError):
            raise InvalidKindError(str(kind)) from None


def _check_capacity(capacity: object) -> None:
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        raise InvalidWindowSizeError(capacity)