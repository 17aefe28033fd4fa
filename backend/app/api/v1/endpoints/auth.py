from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from backend.app.api.deps import get_login_service, login_limiter
from backend.app.schemas.auth import LoginFailureOut, LoginIn, LoginSuccessOut
from backend.app.services.auth.login import LoginService
from backend.app.services.auth.types import ERROR_MESSAGES, LoginErrorKind

router = APIRouter()

ERROR_STATUS: dict[LoginErrorKind, int] = {
    LoginErrorKind.MISSING_CREDENTIALS: status.HTTP_400_BAD_REQUEST,
    LoginErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    LoginErrorKind.USER_BLOCKED: status.HTTP_403_FORBIDDEN,
    LoginErrorKind.USER_INACTIVE: status.HTTP_403_FORBIDDEN,
    LoginErrorKind.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.post(
    "/login",
    response_model=LoginSuccessOut,
    responses={code: {"model": LoginFailureOut} for code in set(ERROR_STATUS.values())},
    dependencies=[Depends(login_limiter)],
)
async def login(
    body: LoginIn,
    service: LoginService = Depends(get_login_service),
) -> LoginSuccessOut | JSONResponse:
    result = await service.login(body.alias, body.secret)
    if result.success:
        return LoginSuccessOut.from_result(result)

    kind = result.error_kind or LoginErrorKind.INTERNAL_ERROR
    failure = LoginFailureOut(error_kind=kind, message=result.message or ERROR_MESSAGES[kind])
    return JSONResponse(
        status_code=ERROR_STATUS[kind],
        content=failure.model_dump(mode="json", by_alias=True),
    )
