"""Consecutive-failure lockout policy.

Pure decisions only: the ledger persists what the policy returns, and the
orchestrator flips the account status when a decision says to lock.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from backend.app.core.config import settings
from backend.app.services.auth.types import AttemptRecord


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FailureDecision:
    failure_count: int
    should_lock: bool


@dataclass(frozen=True)
class SuccessReset:
    last_success_at: datetime
    failure_count: int = 0
    locked_at: datetime | None = None


class LockoutPolicy:
    def __init__(
        self,
        threshold: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.threshold = threshold if threshold is not None else settings.MAX_LOGIN_ATTEMPTS
        if self.threshold < 1:
            raise ValueError("Lockout threshold must be at least 1")
        self.clock = clock

    def on_failure(self, record: AttemptRecord | None) -> FailureDecision:
        if record is None:
            count = 1
        else:
            count = record.failure_count + 1
        return FailureDecision(failure_count=count, should_lock=count >= self.threshold)

    def on_success(self) -> SuccessReset:
        return SuccessReset(last_success_at=self.clock())
