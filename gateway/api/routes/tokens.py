from fastapi import APIRouter, Depends, Request, status

from config import ApplicationConfig
from gateway.api.error import ClientError, ServerError, store_unavailable
from gateway.api.utils.request_context import client_ip
from gateway.app.services.event_filter import EventFilter
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.app.use_cases.tokens import (
    IssueTokenCommand,
    IssueTokenResponse,
    IssueTokenUseCase,
    TokenValidationResponse,
    ValidateTokenCommand,
    ValidateTokenUseCase,
)
from gateway.depends import get_clock, get_event_filter, get_optional_user, get_unit_of_work
from gateway.domain.base import Clock
from gateway.domain.entities import ErrorCode

router = APIRouter(prefix="/tokens", tags=["Tokens"])

TOKEN_DENIALS = {
    ErrorCode.TOKEN_NOT_FOUND.value,
    ErrorCode.TOKEN_EXPIRED.value,
    ErrorCode.TOKEN_SESSION_MISMATCH.value,
}


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    response_model=IssueTokenResponse,
    dependencies=[Depends(get_optional_user)],
)
async def issue_token(
    command: IssueTokenCommand,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    event_filter: EventFilter = Depends(get_event_filter),
):
    """
    Issue Token

    Issues a one-time anti-forgery token bound to the session.

    Raises:
        - 400 Bad Request: REPLAY_WINDOW_VIOLATION, INVALID_SESSION_IDENTIFIER
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = IssueTokenUseCase(
        uow, clock, event_filter, store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS
    )
    result = await use_case.execute(command, ip_address=client_ip(request))

    if result.is_err():
        error = result.error
        if error.code in (
            ErrorCode.REPLAY_WINDOW_VIOLATION.value,
            ErrorCode.INVALID_SESSION_IDENTIFIER.value,
        ):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        if error.code == ErrorCode.STORE_UNAVAILABLE.value:
            raise store_unavailable(error)
        raise ServerError(error)

    return result.value


@router.post(
    "/validate",
    status_code=status.HTTP_200_OK,
    response_model=TokenValidationResponse,
    dependencies=[Depends(get_optional_user)],
)
async def validate_token(
    command: ValidateTokenCommand,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    event_filter: EventFilter = Depends(get_event_filter),
):
    """
    Validate Token

    Consumes the token on success. Denials are returned with 200 and
    isValid=false so callers can act on the reason.

    Raises:
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = ValidateTokenUseCase(
        uow, clock, event_filter, store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS
    )
    result = await use_case.execute(command, ip_address=client_ip(request))

    if result.is_err():
        error = result.error
        if error.code in TOKEN_DENIALS:
            return TokenValidationResponse(is_valid=False, reason=error.code)
        if error.code == ErrorCode.STORE_UNAVAILABLE.value:
            raise store_unavailable(error)
        raise ServerError(error)

    return result.value
