from __future__ import annotations

import logging

from app.core.metrics import WINDOW_AVERAGE, WINDOW_LENGTH, WINDOW_MERGE_COUNT
from app.numbers.kinds import NumberKind
from app.numbers.store import WindowStore
from app.numbers.upstream import NumbersProvider
from app.numbers.window import MergeResult
from app.utils.errors import InvalidKindError, InvalidWindowSizeError


logger = logging.getLogger(__name__)

_MAX_WINDOW_SIZE_DIGITS = 9


def parse_kind(raw: str) -> NumberKind:
    kind = NumberKind.from_code(raw)
    if kind is None:
        raise InvalidKindError(raw)
    return kind


def parse_window_size(raw: str | None, default: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    text = raw.strip()
    if len(text) > _MAX_WINDOW_SIZE_DIGITS or not text.isdecimal() or not text.isascii():
        raise InvalidWindowSizeError(raw)
    value = int(text)
    if value < 1:
        raise InvalidWindowSizeError(raw)
    return value


class NumbersService:
    def __init__(
        self,
        store: WindowStore,
        provider: NumbersProvider,
        *,
        default_window_size: int = 10,
    ) -> None:
        if default_window_size < 1:
            raise ValueError("default_window_size must be positive")
        self.store = store
        self.provider = provider
        self.default_window_size = default_window_size

    async def get_numbers(self, kind: NumberKind, window_size: int) -> MergeResult:
        # Fetch first: the store lock must never be held across I/O.
        incoming = await self.provider.fetch(kind)
        result = self.store.merge(kind, window_size, incoming)

        WINDOW_MERGE_COUNT.labels(kind=kind.label).inc()
        WINDOW_LENGTH.labels(kind=kind.label).set(len(result.curr_state))
        WINDOW_AVERAGE.labels(kind=kind.label).set(result.average)
        logger.info(
            "numbers_window_updated",
            extra={
                "kind": kind.label,
                "window_size": window_size,
                "received": len(result.numbers),
                "window_length": len(result.curr_state),
                "avg": result.average,
            },
        )
        return result

    async def handle(self, raw_kind: str, raw_window_size: str | None) -> MergeResult:
        kind = parse_kind(raw_kind)
        window_size = parse_window_size(raw_window_size, self.default_window_size)
        return await self.get_numbers(kind, window_size)
