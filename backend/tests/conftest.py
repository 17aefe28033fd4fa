"""Shared test fixtures.

Service tests run against the in-memory stores in ``fakes.py``; store tests
get a fresh in-memory SQLite database per test.
"""

from __future__ import annotations

import logging
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from backend.app.core.database import Base, make_session_factory
from backend.app.core.security import CredentialHasher
from backend.app.models.login_attempt import LoginAttempt  # noqa: F401
from backend.app.models.user import User, UserStatus
from backend.app.services.auth.lockout import LockoutPolicy
from backend.app.services.auth.login import LoginService
from backend.app.services.auth.types import AccountRecord
from backend.tests.fakes import InMemoryAccountStore, InMemoryAttemptLedger

FIXED_NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


# ─── Credential / policy helpers ─────────────────────────────────────────────


@pytest.fixture(scope="session")
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=4)


@pytest.fixture()
def policy() -> LockoutPolicy:
    return LockoutPolicy(threshold=3, clock=lambda: FIXED_NOW)


def make_account(
    alias: str,
    credential: str,
    *,
    status: int = UserStatus.ACTIVE,
    account_id: int = 1,
    business_id: int = 10,
    role_id: int = 2,
) -> AccountRecord:
    return AccountRecord(
        id=account_id,
        alias=alias,
        credential=credential,
        status=status,
        business_id=business_id,
        role_id=role_id,
        name=alias.title(),
    )


# ─── In-memory stores ────────────────────────────────────────────────────────


@pytest.fixture()
def accounts() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture()
def ledger() -> InMemoryAttemptLedger:
    return InMemoryAttemptLedger()


@pytest.fixture()
def service(
    accounts: InMemoryAccountStore,
    ledger: InMemoryAttemptLedger,
    hasher: CredentialHasher,
    policy: LockoutPolicy,
) -> LoginService:
    return LoginService(
        accounts,
        ledger,
        hasher=hasher,
        policy=policy,
        logger=logging.getLogger("tests.login"),
    )


# ─── SQLite database ─────────────────────────────────────────────────────────


@pytest_asyncio.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture()
def add_user(session_factory: async_sessionmaker[AsyncSession]):
    """Return a coroutine that inserts a ``users`` row."""

    async def _add(
        alias: str,
        password: str,
        *,
        status: int = UserStatus.ACTIVE,
        business_id: int = 10,
        role_id: int = 2,
    ) -> User:
        async with session_factory.begin() as session:
            user = User(
                alias=alias,
                name=alias.title(),
                hashed_password=password,
                status=status,
                business_id=business_id,
                role_id=role_id,
            )
            session.add(user)
            await session.flush()
            return user

    return _add
