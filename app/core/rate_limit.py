from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable


DEFAULT_SCOPE = "*"


@dataclass(frozen=True)
class RateLimitRule:
    path: str
    max_requests: int


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int = 0


class SlidingWindowRateLimiter:
    """Per-client request log over a rolling time window.

    A client's requests are bucketed by the longest matching rule prefix, so
    every ``/numbers/{kind}`` path shares one budget; paths matching no rule
    share the default scope. Buckets whose entries have all expired are
    dropped at most once per window.
    """

    def __init__(
        self,
        *,
        window_seconds: int,
        default_limit: int,
        rules: list[RateLimitRule],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window_seconds = max(int(window_seconds), 1)
        self._default_limit = max(int(default_limit), 1)
        self._rules = sorted(rules, key=lambda rule: len(rule.path), reverse=True)
        self._clock = clock
        self._lock = threading.Lock()
        self._requests: dict[tuple[str, str], deque[float]] = {}
        self._last_sweep = clock()

    def check(self, *, client_id: str, path: str) -> RateLimitDecision:
        scope, limit = self._scope_for_path(path)
        now = self._clock()
        threshold = now - self._window_seconds
        key = (client_id, scope)
        with self._lock:
            if now - self._last_sweep >= self._window_seconds:
                self._sweep(threshold)
                self._last_sweep = now
            bucket = self._requests.get(key)
            if bucket is None:
                bucket = self._requests[key] = deque()
            while bucket and bucket[0] <= threshold:
                bucket.popleft()
            if len(bucket) >= limit:
                retry_after = math.ceil(bucket[0] + self._window_seconds - now)
                return RateLimitDecision(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    retry_after_seconds=max(retry_after, 1),
                )
            bucket.append(now)
            return RateLimitDecision(allowed=True, limit=limit, remaining=limit - len(bucket))

    def allow(self, *, client_id: str, path: str) -> bool:
        return self.check(client_id=client_id, path=path).allowed

    def _sweep(self, threshold: float) -> None:
        expired = [key for key, bucket in self._requests.items() if not bucket or bucket[-1] <= threshold]
        for key in expired:
            del self._requests[key]

    def _scope_for_path(self, path: str) -> tuple[str, int]:
        for rule in self._rules:
            if path.startswith(rule.path):
                return rule.path, max(int(rule.max_requests), 1)
        return DEFAULT_SCOPE, self._default_limit
