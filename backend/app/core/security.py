from __future__ import annotations

import hmac
from dataclasses import dataclass

from passlib.context import CryptContext

from backend.app.core.config import settings

# bcrypt modular-crypt form: $2b$<cost>$<53 chars of salt+digest>, 60 total
BCRYPT_HASH_LENGTH = 60
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


@dataclass(frozen=True)
class CredentialCheck:
    matched: bool
    needs_migration: bool = False


def is_modern_credential(stored: str) -> bool:
    """True when *stored* has the length and prefix of a bcrypt hash."""
    return len(stored) == BCRYPT_HASH_LENGTH and stored.startswith(BCRYPT_PREFIXES)


class CredentialHasher:
    """Verifies submitted secrets against stored credentials.

    Stored credentials come in two encodings: bcrypt hashes written by the
    user administration screens, and plaintext values left over from before
    hashing was introduced. Plaintext matches are reported with
    ``needs_migration`` so the caller can replace them with a hash.
    """

    def __init__(self, rounds: int | None = None) -> None:
        self.rounds = rounds if rounds is not None else settings.BCRYPT_ROUNDS
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self.rounds,
        )

    def verify(self, secret: str, stored: str | None) -> CredentialCheck:
        if not stored:
            return CredentialCheck(matched=False)

        if is_modern_credential(stored):
            try:
                return CredentialCheck(matched=self._context.verify(secret, stored))
            except ValueError:
                # Right shape, unparseable salt or digest
                return CredentialCheck(matched=False)

        # Truncated or corrupted hashes fail closed instead of being
        # compared as plaintext.
        if stored.startswith(BCRYPT_PREFIXES):
            return CredentialCheck(matched=False)

        matched = hmac.compare_digest(secret.encode("utf-8"), stored.encode("utf-8"))
        return CredentialCheck(matched=matched, needs_migration=matched)

    def migrate(self, secret: str) -> str | None:
        """Return a bcrypt hash of *secret* to replace a plaintext credential.

        Returns None when bcrypt refuses the secret (NUL bytes); the
        plaintext credential then stays in place.
        """
        try:
            return self.hash(secret)
        except ValueError:
            return None

    def hash(self, secret: str) -> str:
        return self._context.hash(secret)


default_hasher = CredentialHasher()
