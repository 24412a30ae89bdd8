from __future__ import annotations

from enum import Enum


class NumberKind(str, Enum):
    PRIME = "p"
    FIBONACCI = "f"
    EVEN = "e"
    RANDOM = "r"

    @property
    def upstream_path(self) -> str:
        return _UPSTREAM_PATHS[self]

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_code(cls, code: str) -> "NumberKind | None":
        try:
            return cls(code)
        except ValueError:
            return None


_UPSTREAM_PATHS = {
    NumberKind.PRIME: "primes",
    NumberKind.FIBONACCI: "fibo",
    NumberKind.EVEN: "even",
    NumberKind.RANDOM: "rand",
}

FALLBACK_NUMBERS: dict[NumberKind, tuple[int, ...]] = {
    NumberKind.PRIME: (2, 3, 5, 7, 11),
    NumberKind.FIBONACCI: (1, 1, 2, 3, 5, 8),
    NumberKind.EVEN: (2, 4, 6, 8, 10),
    NumberKind.RANDOM: (7, 14, 21, 28, 35),
}

STATIC_NUMBERS: dict[NumberKind, tuple[int, ...]] = {
    NumberKind.PRIME: (2, 3, 5, 7, 11, 13, 17, 19, 23, 29),
    NumberKind.FIBONACCI: (1, 1, 2, 3, 5, 8, 13, 21, 34, 55),
    NumberKind.EVEN: (2, 4, 6, 8, 10, 12, 14, 16, 18, 20),
    NumberKind.RANDOM: (7, 14, 21, 28, 35, 42, 49, 56, 63, 70),
}
