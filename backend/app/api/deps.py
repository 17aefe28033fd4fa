from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.app.core.config import settings
from backend.app.core.database import get_session_factory
from backend.app.core.security import CredentialHasher, default_hasher
from backend.app.middleware.rate_limit import InMemoryRateLimiter
from backend.app.services.auth.lockout import LockoutPolicy
from backend.app.services.auth.login import LoginService
from backend.app.services.auth.stores import SqlAccountStore, SqlAttemptLedger

login_limiter = InMemoryRateLimiter(
    window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    max_attempts=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
)


def get_hasher() -> CredentialHasher:
    return default_hasher


@lru_cache
def get_lockout_policy() -> LockoutPolicy:
    return LockoutPolicy(threshold=settings.MAX_LOGIN_ATTEMPTS)


def get_login_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    hasher: CredentialHasher = Depends(get_hasher),
    policy: LockoutPolicy = Depends(get_lockout_policy),
) -> LoginService:
    return LoginService(
        SqlAccountStore(session_factory),
        SqlAttemptLedger(session_factory),
        hasher=hasher,
        policy=policy,
        logger=logging.getLogger("backend.app.auth"),
    )
