"""Administrative unblock, the only way back from BLOCKED to ACTIVE."""

from __future__ import annotations

import logging

from backend.app.models.user import UserStatus
from backend.app.services.auth.stores import AccountStore, AttemptLedger
from backend.app.services.auth.types import AccountRecord

logger = logging.getLogger(__name__)


async def unblock_account(
    alias: str,
    accounts: AccountStore,
    ledger: AttemptLedger,
) -> AccountRecord:
    """Reactivate a locked account and clear its failure counter.

    Raises ValueError if the alias is unknown or the account is not blocked.
    """
    account = await accounts.find_by_alias(alias)
    if account is None:
        raise ValueError("User not found")
    if not account.is_blocked:
        raise ValueError("User is not blocked")

    existing = await ledger.find_by_alias(alias)
    await ledger.upsert(
        alias,
        account.business_id,
        0,
        None,
        existing.last_success_at if existing else None,
    )
    await accounts.update_status(alias, UserStatus.ACTIVE)
    account.status = UserStatus.ACTIVE

    logger.info("Account %s unblocked", alias, extra={"event": "account_unblocked", "alias": alias})
    return account
