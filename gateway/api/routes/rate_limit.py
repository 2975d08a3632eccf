from fastapi import APIRouter, Depends, Request, Response, status

from config import ApplicationConfig
from gateway.api.error import ServerError
from gateway.api.utils.request_context import client_ip
from gateway.app.services.event_filter import EventFilter
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.app.use_cases.rate_limit import (
    CheckRateLimitUseCase,
    RateLimitCheckCommand,
    RateLimitDecision,
)
from gateway.depends import get_clock, get_event_filter, get_optional_user, get_unit_of_work
from gateway.domain.base import Clock, to_epoch_ms

router = APIRouter(prefix="/rate-limit", tags=["Rate Limit"])


def _set_headers(response: Response, decision: RateLimitDecision):
    if not decision.max_attempts:
        return
    remaining = max(0, decision.max_attempts - decision.attempts)
    response.headers["X-RateLimit-Limit"] = str(decision.max_attempts)
    response.headers["X-RateLimit-Remaining"] = str(remaining)
    if decision.reset_time is not None:
        response.headers["X-RateLimit-Reset"] = str(to_epoch_ms(decision.reset_time))


async def _check(
    command: RateLimitCheckCommand,
    request: Request,
    response: Response,
    uow: UnitOfWork,
    clock: Clock,
    event_filter: EventFilter,
    fail_closed: bool,
) -> RateLimitDecision:
    fail_closed = fail_closed or command.endpoint in ApplicationConfig.FAIL_CLOSED_RATE_LIMIT_ENDPOINTS
    use_case = CheckRateLimitUseCase(
        uow,
        clock,
        event_filter,
        fail_closed=fail_closed,
        store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS,
    )
    result = await use_case.execute(command, ip_address=client_ip(request))

    if result.is_err():
        raise ServerError(result.error)

    decision = result.value
    _set_headers(response, decision)
    return decision


@router.post(
    "/check",
    status_code=status.HTTP_200_OK,
    response_model=RateLimitDecision,
    dependencies=[Depends(get_optional_user)],
)
async def check_rate_limit(
    command: RateLimitCheckCommand,
    request: Request,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    event_filter: EventFilter = Depends(get_event_filter),
):
    """
    Check Rate Limit (fail open)

    Records the attempt and returns the admit/block decision with 200.
    If the store is unavailable the call is admitted, unless the endpoint
    is listed in FAIL_CLOSED_RATE_LIMIT_ENDPOINTS.
    """
    return await _check(command, request, response, uow, clock, event_filter, fail_closed=False)


@router.post(
    "/secure-check",
    status_code=status.HTTP_200_OK,
    response_model=RateLimitDecision,
    dependencies=[Depends(get_optional_user)],
)
async def secure_check_rate_limit(
    command: RateLimitCheckCommand,
    request: Request,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    event_filter: EventFilter = Depends(get_event_filter),
):
    """
    Check Rate Limit (fail closed)

    Same decision as /check, but an unavailable store denies the call.
    Used on security-critical paths such as login and token issue.
    """
    return await _check(command, request, response, uow, clock, event_filter, fail_closed=True)
