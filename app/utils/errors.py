from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ErrorDetail:
    code: str
    message: str
    classification: str
    status_code: int
    extra: dict[str, Any] | None = None


class AppError(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        classification: str,
        status_code: int,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.detail = ErrorDetail(
            code=code,
            message=message,
            classification=classification,
            status_code=status_code,
            extra=extra,
        )


class InvalidKindError(AppError):
    def __init__(self, kind: str) -> None:
        super().__init__(
            code="invalid_kind",
            message="Invalid number kind. Use p (primes), f (fibonacci), e (even) or r (random)",
            classification="client",
            status_code=400,
            extra={"kind": kind},
        )


class InvalidWindowSizeError(AppError):
    def __init__(self, value: object) -> None:
        super().__init__(
            code="invalid_window_size",
            message="windowSize must be a positive integer",
            classification="client",
            status_code=400,
            extra={"windowSize": str(value)[:32]},
        )


class UpstreamUnavailableError(AppError):
    """Raised inside the numbers provider and absorbed there; never reaches a client."""

    def __init__(self, reason: str, message: str = "Numbers provider unavailable") -> None:
        super().__init__(
            code="upstream_unavailable",
            message=message,
            classification="dependency",
            status_code=503,
            extra={"reason": reason},
        )
        self.reason = reason


class RequestTimeoutError(AppError):
    def __init__(self, message: str = "Request timeout") -> None:
        super().__init__(
            code="request_timeout",
            message=message,
            classification="transient",
            status_code=504,
        )
