"""Reactivate an account that was locked after repeated failed logins.

Usage:
    python -m backend.scripts.unblock_user <alias>
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from backend.app.core.database import SessionLocal
from backend.app.services.auth.admin import unblock_account
from backend.app.services.auth.stores import SqlAccountStore, SqlAttemptLedger


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("alias", help="login alias of the blocked account")
    args = parser.parse_args(argv)

    try:
        account = asyncio.run(
            unblock_account(
                args.alias,
                SqlAccountStore(SessionLocal),
                SqlAttemptLedger(SessionLocal),
            )
        )
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print(f"User {account.alias} unblocked.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
