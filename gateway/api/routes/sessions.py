from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from config import ApplicationConfig
from gateway.api.error import ServerError, store_unavailable
from gateway.api.utils.request_context import client_ip
from gateway.app.services.event_filter import EventFilter
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.app.use_cases.sessions import (
    RegisterSessionCommand,
    RegisterSessionResponse,
    RegisterSessionUseCase,
    SessionValidationResponse,
    ValidateSessionCommand,
    ValidateSessionUseCase,
)
from gateway.depends import get_clock, get_current_user, get_event_filter, get_unit_of_work
from gateway.domain.base import Clock
from gateway.domain.entities import ErrorCode

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterSessionResponse,
)
async def register_session(
    command: RegisterSessionCommand,
    request: Request,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    event_filter: EventFilter = Depends(get_event_filter),
):
    """
    Register Session

    Login-side hook: opens a session for the user on this device. The row
    expires after 7 days; validation marks it stale once it is 24 hours old.

    Raises:
        - 401 Unauthorized: missing or invalid bearer token
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    user_id = current_user["user_id"]

    use_case = RegisterSessionUseCase(
        uow, clock, event_filter, store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS
    )
    result = await use_case.execute(user_id, command.device_fingerprint, client_ip(request))

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.STORE_UNAVAILABLE.value:
            raise store_unavailable(error)
        raise ServerError(error)

    return result.value


@router.post(
    "/validate",
    status_code=status.HTTP_200_OK,
    response_model=SessionValidationResponse,
)
async def validate_session(
    command: ValidateSessionCommand,
    request: Request,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    event_filter: EventFilter = Depends(get_event_filter),
):
    """
    Validate Session

    Returns the validity verdict with the accumulated security level and
    required actions. An unavailable store returns the invalid/critical
    verdict with 503.

    Raises:
        - 401 Unauthorized: missing or invalid bearer token
    """
    user_id = current_user["user_id"]

    use_case = ValidateSessionUseCase(
        uow, clock, event_filter, store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS
    )
    result = await use_case.execute(user_id, command, ip_address=client_ip(request))

    if result.is_err():
        raise ServerError(result.error)

    verdict = result.value
    if verdict.reason == ErrorCode.STORE_UNAVAILABLE.value:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=verdict.model_dump(mode="json", by_alias=True),
        )
    return verdict
