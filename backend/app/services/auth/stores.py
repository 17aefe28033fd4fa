"""Account Store and Attempt Ledger.

The protocols are what the login orchestrator depends on; the ``Sql*``
classes implement them over the ``users`` and ``login_attempts`` tables.
Each call runs in its own short transaction opened from an injected
session factory.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.app.models.login_attempt import LoginAttempt
from backend.app.models.user import User
from backend.app.services.auth.lockout import FailureDecision, LockoutPolicy
from backend.app.services.auth.types import AccountRecord, AttemptRecord, StoreError

logger = logging.getLogger(__name__)

# Transactions rolled back by a concurrent writer are retried this many times
RETRY_ATTEMPTS = 3

# MySQL lock wait timeout and deadlock
_MYSQL_RETRYABLE_CODES = {1205, 1213}


class AccountStore(Protocol):
    async def find_by_alias(self, alias: str) -> AccountRecord | None: ...

    async def update_credential(self, alias: str, credential: str) -> None: ...

    async def update_status(self, alias: str, status: int) -> None: ...


class AttemptLedger(Protocol):
    async def find_by_alias(self, alias: str) -> AttemptRecord | None: ...

    async def upsert(
        self,
        alias: str,
        business_id: int | None,
        failure_count: int,
        locked_at: datetime | None,
        last_success_at: datetime | None,
    ) -> AttemptRecord: ...

    async def record_failure(
        self, alias: str, business_id: int | None, policy: LockoutPolicy
    ) -> tuple[AttemptRecord, FailureDecision]:
        """Apply ``policy.on_failure`` to the current record atomically.

        Concurrent calls for the same alias must each observe the count
        written by the previous one.
        """
        ...


@asynccontextmanager
async def _transaction(
    session_factory: async_sessionmaker[AsyncSession], action: str
) -> AsyncIterator[AsyncSession]:
    try:
        async with session_factory.begin() as session:
            yield session
    except (SQLAlchemyError, OSError) as exc:
        raise StoreError(f"{action} failed") from exc


def _is_retryable(exc: StoreError) -> bool:
    """True when the failed transaction lost a race and can simply be rerun.

    Covers a concurrent first INSERT of the same alias (unique violation),
    an InnoDB deadlock or lock wait timeout between the gap locks two
    `SELECT ... FOR UPDATE` calls take on a missing row, and SQLite's
    busy error.
    """
    cause = exc.__cause__
    if isinstance(cause, IntegrityError):
        return True
    if isinstance(cause, OperationalError):
        args = getattr(cause.orig, "args", ())
        if args and args[0] in _MYSQL_RETRYABLE_CODES:
            return True
        return "database is locked" in str(cause.orig)
    return False


def _to_account(user: User) -> AccountRecord:
    return AccountRecord(
        id=user.id,
        alias=user.alias,
        credential=user.hashed_password,
        status=user.status,
        business_id=user.business_id,
        role_id=user.role_id,
        name=user.name,
    )


def _to_attempt(row: LoginAttempt) -> AttemptRecord:
    return AttemptRecord(
        alias=row.alias,
        business_id=row.business_id,
        failure_count=row.failed_attempts,
        locked_at=row.locked_at,
        last_success_at=row.last_success_at,
    )


class SqlAccountStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_alias(self, alias: str) -> AccountRecord | None:
        async with _transaction(self._session_factory, "Account lookup") as session:
            user = await session.scalar(select(User).where(User.alias == alias))
            # MySQL's default collation ignores case; aliases do not.
            if user is None or user.alias != alias:
                return None
            return _to_account(user)

    async def update_credential(self, alias: str, credential: str) -> None:
        async with _transaction(self._session_factory, "Credential update") as session:
            await session.execute(
                update(User).where(User.alias == alias).values(hashed_password=credential)
            )

    async def update_status(self, alias: str, status: int) -> None:
        async with _transaction(self._session_factory, "Status update") as session:
            await session.execute(
                update(User).where(User.alias == alias).values(status=int(status))
            )


class SqlAttemptLedger:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @staticmethod
    async def _locked_row(session: AsyncSession, alias: str) -> LoginAttempt | None:
        return await session.scalar(
            select(LoginAttempt).where(LoginAttempt.alias == alias).with_for_update()
        )

    async def find_by_alias(self, alias: str) -> AttemptRecord | None:
        async with _transaction(self._session_factory, "Attempt lookup") as session:
            row = await session.scalar(
                select(LoginAttempt).where(LoginAttempt.alias == alias)
            )
            return _to_attempt(row) if row else None

    async def upsert(
        self,
        alias: str,
        business_id: int | None,
        failure_count: int,
        locked_at: datetime | None,
        last_success_at: datetime | None,
    ) -> AttemptRecord:
        for _ in range(RETRY_ATTEMPTS - 1):
            try:
                return await self._upsert_once(
                    alias, business_id, failure_count, locked_at, last_success_at
                )
            except StoreError as exc:
                if not _is_retryable(exc):
                    raise
                logger.info("Attempt upsert for %s lost a race, retrying", alias)
        return await self._upsert_once(
            alias, business_id, failure_count, locked_at, last_success_at
        )

    async def _upsert_once(
        self,
        alias: str,
        business_id: int | None,
        failure_count: int,
        locked_at: datetime | None,
        last_success_at: datetime | None,
    ) -> AttemptRecord:
        async with _transaction(self._session_factory, "Attempt upsert") as session:
            row = await self._locked_row(session, alias)
            if row is None:
                row = LoginAttempt(alias=alias)
                session.add(row)
            if business_id is not None:
                row.business_id = business_id
            row.failed_attempts = failure_count
            row.locked_at = locked_at
            row.last_success_at = last_success_at
            await session.flush()
            return _to_attempt(row)

    async def record_failure(
        self, alias: str, business_id: int | None, policy: LockoutPolicy
    ) -> tuple[AttemptRecord, FailureDecision]:
        for _ in range(RETRY_ATTEMPTS - 1):
            try:
                return await self._record_failure_once(alias, business_id, policy)
            except StoreError as exc:
                # The rerun sees the row the winning request wrote.
                if not _is_retryable(exc):
                    raise
                logger.info("Failed-attempt update for %s lost a race, retrying", alias)
        return await self._record_failure_once(alias, business_id, policy)

    async def _record_failure_once(
        self, alias: str, business_id: int | None, policy: LockoutPolicy
    ) -> tuple[AttemptRecord, FailureDecision]:
        async with _transaction(self._session_factory, "Failed attempt update") as session:
            row = await self._locked_row(session, alias)
            decision = policy.on_failure(_to_attempt(row) if row else None)
            now = policy.clock()
            if row is None:
                row = LoginAttempt(alias=alias)
                session.add(row)
            if business_id is not None:
                row.business_id = business_id
            row.failed_attempts = decision.failure_count
            row.last_attempt_at = now
            if decision.should_lock and row.locked_at is None:
                row.locked_at = now
            await session.flush()
            return _to_attempt(row), decision
