"""
Admin API Routes - Gateway Administration Endpoints

Rate-limit configuration and store maintenance for operators and
schedulers. Authentication is via Admin API Key, not user JWTs.
"""

from fastapi import APIRouter, Depends, status

from config import ApplicationConfig
from gateway.api.error import ClientError, ServerError, store_unavailable
from gateway.api.utils.admin_auth import verify_admin_api_key
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.app.use_cases.events import (
    OptimizeSecurityEventsResponse,
    OptimizeSecurityEventsUseCase,
)
from gateway.app.use_cases.rate_limit import (
    GetRateLimitConfigUseCase,
    RateLimitConfigCommand,
    RateLimitConfigResponse,
    UpsertRateLimitConfigUseCase,
)
from gateway.depends import get_clock, get_unit_of_work
from gateway.domain.base import Clock
from gateway.domain.entities import ErrorCode

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.put(
    "/rate-limits/{endpoint:path}",
    status_code=status.HTTP_200_OK,
    response_model=RateLimitConfigResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def upsert_rate_limit(
    endpoint: str,
    command: RateLimitConfigCommand,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Create or update the rate limit for an endpoint.

    Requires: X-Admin-API-Key header
    """
    use_case = UpsertRateLimitConfigUseCase(
        uow, clock, store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS
    )
    result = await use_case.execute(endpoint, command)

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.STORE_UNAVAILABLE.value:
            raise store_unavailable(error)
        raise ServerError(error)

    return result.value


@router.get(
    "/rate-limits/{endpoint:path}",
    status_code=status.HTTP_200_OK,
    response_model=RateLimitConfigResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def get_rate_limit(
    endpoint: str,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Read the rate limit configured for an endpoint.

    Requires: X-Admin-API-Key header

    Raises:
        - 404 Not Found: RATE_LIMIT_CONFIG_NOT_FOUND
    """
    use_case = GetRateLimitConfigUseCase(
        uow, store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS
    )
    result = await use_case.execute(endpoint)

    if result.is_err():
        error = result.error
        if error.code == "RATE_LIMIT_CONFIG_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        if error.code == ErrorCode.STORE_UNAVAILABLE.value:
            raise store_unavailable(error)
        raise ServerError(error)

    return result.value


@router.post(
    "/maintenance/optimize",
    status_code=status.HTTP_200_OK,
    response_model=OptimizeSecurityEventsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def optimize_security_events(
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Compact noisy security events and retire expired tokens.

    Safe to run repeatedly and alongside ingestion.

    Requires: X-Admin-API-Key header
    """
    use_case = OptimizeSecurityEventsUseCase(
        uow, clock, store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS
    )
    result = await use_case.execute()

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.STORE_UNAVAILABLE.value:
            raise store_unavailable(error)
        raise ServerError(error)

    return result.value
