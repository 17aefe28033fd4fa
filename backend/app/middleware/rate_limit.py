"""In-memory sliding-window limiter for the login route.

Keyed by client IP. Per-account lockout lives in the attempt ledger; this
only caps how fast one client can try aliases. Multi-replica deployments
need a shared backend instead.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable

from fastapi import HTTPException, Request, status


class InMemoryRateLimiter:
    """Sliding-window rate limiter keyed by an arbitrary string."""

    def __init__(
        self,
        window_seconds: int = 60,
        max_attempts: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window_seconds
        self._max = max_attempts
        self._clock = clock
        self._attempts: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        """Number of keys currently tracked."""
        return len(self._attempts)

    def check(self, key: str) -> None:
        """Raise HTTP 429 if *key* has used up its attempts in the window."""
        now = self._clock()
        self._maybe_sweep(now)
        attempts = self._attempts.setdefault(key, deque())
        self._prune(attempts, now)
        if len(attempts) >= self._max:
            retry_after = int(self._window - (now - attempts[0])) + 1
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many attempts. Try again in {retry_after} seconds.",
                headers={"Retry-After": str(retry_after)},
            )
        attempts.append(now)

    def reset(self) -> None:
        self._attempts.clear()

    def _prune(self, attempts: deque[float], now: float) -> None:
        while attempts and now - attempts[0] >= self._window:
            attempts.popleft()

    def _maybe_sweep(self, now: float) -> None:
        """Drop keys with no attempts left in the window, once per window."""
        if now - self._last_sweep < self._window:
            return
        self._last_sweep = now
        for key in list(self._attempts):
            attempts = self._attempts[key]
            self._prune(attempts, now)
            if not attempts:
                del self._attempts[key]

    async def __call__(self, request: Request) -> None:
        self.check(request.client.host if request.client else "unknown")
