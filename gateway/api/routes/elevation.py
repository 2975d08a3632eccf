from fastapi import APIRouter, Depends, Request, status

from config import ApplicationConfig
from gateway.api.error import ServerError
from gateway.api.utils.request_context import client_ip
from gateway.app.services.event_filter import EventFilter
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.app.use_cases.elevation import (
    ElevateTrustCommand,
    ElevateTrustUseCase,
    ElevationResponse,
)
from gateway.depends import get_clock, get_current_user, get_event_filter, get_unit_of_work
from gateway.domain.base import Clock

router = APIRouter(prefix="/trust", tags=["Trust"])


@router.post(
    "/elevate",
    status_code=status.HTTP_200_OK,
    response_model=ElevationResponse,
)
async def elevate_trust(
    command: ElevateTrustCommand,
    request: Request,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    event_filter: EventFilter = Depends(get_event_filter),
):
    """
    Trust Elevation

    Returns success, the new trust score, the method used and any
    additional verification steps. Failed elevations are 200 responses.

    Raises:
        - 401 Unauthorized: missing or invalid bearer token
    """
    user_id = current_user["user_id"]

    use_case = ElevateTrustUseCase(
        uow, clock, event_filter, store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS
    )
    result = await use_case.execute(user_id, command, ip_address=client_ip(request))

    if result.is_err():
        raise ServerError(result.error)

    return result.value
