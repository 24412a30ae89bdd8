from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any, Mapping, Protocol, Sequence

import anyio
import httpx

from app.core.metrics import (
    UPSTREAM_CIRCUIT_OPEN,
    UPSTREAM_FAILURE_COUNT,
    UPSTREAM_FALLBACK_COUNT,
    UPSTREAM_FETCH_DURATION,
)
from app.core.settings import Settings
from app.numbers.kinds import FALLBACK_NUMBERS, STATIC_NUMBERS, NumberKind
from app.utils.errors import UpstreamUnavailableError


logger = logging.getLogger(__name__)


class NumbersProvider(Protocol):
    async def fetch(self, kind: NumberKind) -> list[int]: ...


class UpstreamCircuitBreaker:
    def __init__(self, failure_threshold: int, recovery_seconds: int) -> None:
        self._failure_threshold = max(int(failure_threshold), 1)
        self._recovery_seconds = recovery_seconds
        self._failure_count = 0
        self._opened_until: datetime | None = None
        self._lock = Lock()

    def allow_request(self) -> bool:
        with self._lock:
            if self._opened_until is None:
                return True
            if datetime.now(timezone.utc) >= self._opened_until:
                self._opened_until = None
                self._failure_count = 0
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            self._opened_until = None

    def record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            if self._opened_until is None and self._failure_count >= self._failure_threshold:
                self._opened_until = datetime.now(timezone.utc) + timedelta(
                    seconds=self._recovery_seconds
                )
                UPSTREAM_CIRCUIT_OPEN.inc()
                logger.warning(
                    "upstream_circuit_open",
                    extra={"failures": self._failure_count, "recovery_seconds": self._recovery_seconds},
                )

    @property
    def state(self) -> str:
        with self._lock:
            return "open" if self._opened_until else "closed"


def parse_numbers_payload(payload: Any) -> list[int]:
    """Extract the integer list from an upstream ``{"numbers": [...]}`` body.

    Non-integer entries are dropped; a body without a ``numbers`` list is an
    upstream failure.
    """
    if not isinstance(payload, Mapping):
        raise UpstreamUnavailableError("invalid_payload")
    numbers = payload.get("numbers")
    if not isinstance(numbers, list):
        raise UpstreamUnavailableError("invalid_payload")
    return [value for value in numbers if isinstance(value, int) and not isinstance(value, bool)]


class HttpNumbersProvider:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str,
        timeout_seconds: float,
        bearer_token: str | None = None,
        fallback: Mapping[NumberKind, Sequence[int]] | None = None,
        circuit_breaker: UpstreamCircuitBreaker | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._timeout = httpx.Timeout(timeout_seconds)
        self._headers = {"Accept": "application/json"}
        if bearer_token:
            self._headers["Authorization"] = f"Bearer {bearer_token}"
        self._fallback = fallback
        self._breaker = circuit_breaker

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: Settings) -> "HttpNumbersProvider":
        return cls(
            client,
            base_url=settings.upstream_base_url,
            timeout_seconds=settings.upstream_timeout_seconds,
            bearer_token=settings.upstream_bearer_token,
            fallback=FALLBACK_NUMBERS if settings.upstream_fallback_enabled else None,
            circuit_breaker=UpstreamCircuitBreaker(
                failure_threshold=settings.upstream_circuit_failure_threshold,
                recovery_seconds=settings.upstream_circuit_recovery_seconds,
            ),
        )

    def url_for(self, kind: NumberKind) -> str:
        return f"{self._base_url}/{kind.upstream_path}"

    async def fetch(self, kind: NumberKind) -> list[int]:
        try:
            return await self._fetch_remote(kind)
        except UpstreamUnavailableError as exc:
            UPSTREAM_FAILURE_COUNT.labels(kind=kind.label, reason=exc.reason).inc()
            logger.warning(
                "upstream_fetch_failed",
                extra={"kind": kind.label, "reason": exc.reason, "detail": str(exc)},
            )
            return self._degraded(kind)

    async def _fetch_remote(self, kind: NumberKind) -> list[int]:
        if self._breaker is not None and not self._breaker.allow_request():
            raise UpstreamUnavailableError("circuit_open", "Numbers provider circuit open")
        url = self.url_for(kind)
        start = time.perf_counter()
        try:
            # Deadline for the whole exchange, body included.
            with anyio.fail_after(self._timeout_seconds):
                response = await self._client.get(url, headers=self._headers, timeout=self._timeout)
                response.raise_for_status()
                numbers = parse_numbers_payload(response.json())
        except (httpx.TimeoutException, TimeoutError) as exc:
            self._record_failure()
            raise UpstreamUnavailableError("timeout", str(exc) or "Upstream timeout") from exc
        except httpx.HTTPStatusError as exc:
            self._record_failure()
            raise UpstreamUnavailableError(
                "http_status", f"Upstream returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            self._record_failure()
            raise UpstreamUnavailableError("transport", str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            self._record_failure()
            raise UpstreamUnavailableError("invalid_json", "Upstream body is not JSON") from exc
        except UpstreamUnavailableError:
            self._record_failure()
            raise
        finally:
            UPSTREAM_FETCH_DURATION.labels(kind=kind.label).observe(time.perf_counter() - start)
        if self._breaker is not None:
            self._breaker.record_success()
        logger.debug("upstream_fetch_ok", extra={"kind": kind.label, "count": len(numbers)})
        return numbers

    def _record_failure(self) -> None:
        if self._breaker is not None:
            self._breaker.record_failure()

    def _degraded(self, kind: NumberKind) -> list[int]:
        if self._fallback is None:
            return []
        UPSTREAM_FALLBACK_COUNT.labels(kind=kind.label).inc()
        return list(self._fallback.get(kind, ()))


class StaticNumbersProvider:
    def __init__(self, data: Mapping[NumberKind, Sequence[int]] = STATIC_NUMBERS) -> None:
        self._data = {kind: list(values) for kind, values in data.items()}

    async def fetch(self, kind: NumberKind) -> list[int]:
        return list(self._data.get(kind, ()))
