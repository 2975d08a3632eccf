from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from config import ApplicationConfig
from gateway.api.error import ServerError, store_unavailable
from gateway.api.utils.request_context import client_ip
from gateway.app.services.event_filter import EventFilter
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.app.use_cases.events import (
    RecordSecurityEventCommand,
    RecordSecurityEventResponse,
    RecordSecurityEventUseCase,
)
from gateway.depends import get_clock, get_event_filter, get_optional_user, get_unit_of_work
from gateway.domain.base import Clock
from gateway.domain.entities import ErrorCode

router = APIRouter(prefix="/security-events", tags=["Security Events"])


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    response_model=RecordSecurityEventResponse,
)
async def record_security_event(
    command: RecordSecurityEventCommand,
    request: Request,
    current_user: Optional[dict] = Depends(get_optional_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    event_filter: EventFilter = Depends(get_event_filter),
):
    """
    Record Security Event

    Runs the event filter before writing; filtered events return
    logged=false.

    Raises:
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    actor_id = current_user.get("user_id") if current_user else None

    use_case = RecordSecurityEventUseCase(
        uow, clock, event_filter, store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS
    )
    result = await use_case.execute(command, actor_id=actor_id, ip_address=client_ip(request))

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.STORE_UNAVAILABLE.value:
            raise store_unavailable(error)
        raise ServerError(error)

    return result.value
