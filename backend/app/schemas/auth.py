from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.app.services.auth.types import LoginErrorKind, LoginResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class LoginIn(BaseModel):
    # Both optional so that absent fields come back as MISSING_CREDENTIALS
    # instead of a 422.
    alias: str | None = Field(None, max_length=100)
    secret: str | None = Field(
        None,
        max_length=256,
        validation_alias=AliasChoices("secret", "password"),
    )


class AccountViewOut(_CamelModel):
    id: int
    alias: str
    name: str
    status: int
    business_id: int
    role_id: int


class AuthorizationOut(_CamelModel):
    alias: str
    business_id: int
    role_id: int


class LoginSuccessOut(_CamelModel):
    success: bool = True
    account: AccountViewOut
    authorization: AuthorizationOut

    @classmethod
    def from_result(cls, result: LoginResult) -> LoginSuccessOut:
        return cls(
            account=AccountViewOut.model_validate(result.account),
            authorization=AuthorizationOut.model_validate(result.authorization),
        )


class LoginFailureOut(_CamelModel):
    success: bool = False
    error_kind: LoginErrorKind
    message: str
