"""Login orchestration: lookup, status gate, verification, lockout, migration.

Every call ends in exactly one ``LoginResult``. Store failures are logged
and reported as ``INTERNAL_ERROR``; their text never reaches the caller.
"""

from __future__ import annotations

import logging

import anyio

from backend.app.core.security import CredentialHasher
from backend.app.models.user import UserStatus
from backend.app.services.auth.lockout import LockoutPolicy
from backend.app.services.auth.stores import AccountStore, AttemptLedger
from backend.app.services.auth.types import (
    AccountRecord,
    AccountView,
    AuthorizationContext,
    LoginErrorKind,
    LoginResult,
    StoreError,
)

module_logger = logging.getLogger(__name__)


class LoginService:
    def __init__(
        self,
        accounts: AccountStore,
        ledger: AttemptLedger,
        *,
        hasher: CredentialHasher,
        policy: LockoutPolicy,
        logger: logging.Logger | logging.LoggerAdapter = module_logger,
    ) -> None:
        self.accounts = accounts
        self.ledger = ledger
        self.hasher = hasher
        self.policy = policy
        self.logger = logger

    def _event(self, level: int, event: str, alias: str, **fields: object) -> None:
        self.logger.log(
            level,
            "%s alias=%s",
            event,
            alias,
            extra={"event": event, "alias": alias, **fields},
        )

    async def login(self, alias: str | None, secret: str | None) -> LoginResult:
        if not alias or not secret:
            self._event(logging.INFO, "login_missing_credentials", alias or "")
            return LoginResult.failure(LoginErrorKind.MISSING_CREDENTIALS)

        try:
            return await self._login(alias, secret)
        except StoreError:
            self.logger.exception(
                "login_store_error alias=%s",
                alias,
                extra={"event": "login_store_error", "alias": alias},
            )
            return LoginResult.failure(LoginErrorKind.INTERNAL_ERROR)

    async def _login(self, alias: str, secret: str) -> LoginResult:
        account = await self.accounts.find_by_alias(alias)
        if account is None:
            # No ledger row for unknown aliases
            self._event(logging.INFO, "login_unknown_alias", alias)
            return LoginResult.failure(LoginErrorKind.INVALID_CREDENTIALS)

        if account.is_blocked:
            self._event(logging.WARNING, "login_blocked", alias)
            return LoginResult.failure(LoginErrorKind.USER_BLOCKED)
        if not account.is_active:
            self._event(logging.INFO, "login_inactive", alias, status=account.status)
            return LoginResult.failure(LoginErrorKind.USER_INACTIVE)

        # bcrypt is CPU-bound; keep it off the event loop
        check = await anyio.to_thread.run_sync(
            self.hasher.verify, secret, account.credential
        )
        if not check.matched:
            return await self._fail(account)

        reset = self.policy.on_success()
        await self.ledger.upsert(
            alias,
            account.business_id,
            reset.failure_count,
            reset.locked_at,
            reset.last_success_at,
        )
        if check.needs_migration:
            await self._migrate(alias, secret)

        self._event(logging.INFO, "login_success", alias)
        return LoginResult(
            success=True,
            account=AccountView.from_record(account),
            authorization=AuthorizationContext(
                alias=account.alias,
                business_id=account.business_id,
                role_id=account.role_id,
            ),
        )

    async def _migrate(self, alias: str, secret: str) -> None:
        migrated = await anyio.to_thread.run_sync(self.hasher.migrate, secret)
        if migrated is None:
            self._event(logging.WARNING, "credential_migration_skipped", alias)
            return
        await self.accounts.update_credential(alias, migrated)
        self._event(logging.INFO, "credential_migrated", alias)

    async def _fail(self, account: AccountRecord) -> LoginResult:
        record, decision = await self.ledger.record_failure(
            account.alias, account.business_id, self.policy
        )
        self._event(
            logging.INFO,
            "login_failed",
            account.alias,
            failed_attempts=record.failure_count,
        )
        if decision.should_lock:
            await self.accounts.update_status(account.alias, UserStatus.BLOCKED)
            self._event(
                logging.WARNING,
                "account_locked",
                account.alias,
                failed_attempts=record.failure_count,
            )
        # The attempt that trips the lock still reads as a plain failure;
        # USER_BLOCKED is only reported from the next attempt on.
        return LoginResult.failure(LoginErrorKind.INVALID_CREDENTIALS)
