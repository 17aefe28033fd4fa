"""Data contracts shared by the login orchestrator and its stores."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from backend.app.models.user import UserStatus


class StoreError(Exception):
    """A persistence call failed; the message is never shown to clients."""


class LoginErrorKind(str, enum.Enum):
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    USER_BLOCKED = "USER_BLOCKED"
    USER_INACTIVE = "USER_INACTIVE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_MESSAGES: dict[LoginErrorKind, str] = {
    LoginErrorKind.MISSING_CREDENTIALS: "Alias and password are required",
    LoginErrorKind.INVALID_CREDENTIALS: "Invalid credentials",
    LoginErrorKind.USER_BLOCKED: "User is blocked for security reasons",
    LoginErrorKind.USER_INACTIVE: "User is inactive",
    LoginErrorKind.INTERNAL_ERROR: "Internal server error",
}


@dataclass
class AccountRecord:
    id: int
    alias: str
    credential: str
    status: int
    business_id: int
    role_id: int
    name: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def is_blocked(self) -> bool:
        return self.status == UserStatus.BLOCKED


@dataclass
class AttemptRecord:
    alias: str
    business_id: int | None = None
    failure_count: int = 0
    locked_at: datetime | None = None
    last_success_at: datetime | None = None


@dataclass(frozen=True)
class AccountView:
    """An account as returned to the caller, without its credential."""

    id: int
    alias: str
    name: str
    status: int
    business_id: int
    role_id: int

    @classmethod
    def from_record(cls, record: AccountRecord) -> AccountView:
        return cls(
            id=record.id,
            alias=record.alias,
            name=record.name,
            status=record.status,
            business_id=record.business_id,
            role_id=record.role_id,
        )


@dataclass(frozen=True)
class AuthorizationContext:
    alias: str
    business_id: int
    role_id: int


@dataclass(frozen=True)
class LoginResult:
    success: bool
    error_kind: LoginErrorKind | None = None
    message: str = ""
    account: AccountView | None = None
    authorization: AuthorizationContext | None = None

    @classmethod
    def failure(cls, kind: LoginErrorKind) -> LoginResult:
        return cls(success=False, error_kind=kind, message=ERROR_MESSAGES[kind])
