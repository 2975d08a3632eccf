from fastapi import APIRouter, Depends, status

from config import ApplicationConfig
from gateway.api.error import ClientError, ServerError
from gateway.app.services.event_filter import EventFilter
from gateway.app.services.geo_lookup import GeoLookup
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.app.use_cases.geo import (
    AssessGeoRiskUseCase,
    GeoAssessment,
    GeoCheckCommand,
    GeoRiskScorer,
)
from gateway.depends import (
    get_clock,
    get_event_filter,
    get_geo_lookup,
    get_optional_user,
    get_unit_of_work,
)
from gateway.domain.base import Clock
from gateway.domain.entities import ErrorCode

router = APIRouter(prefix="/geo", tags=["Geo"])


@router.post(
    "/check",
    status_code=status.HTTP_200_OK,
    response_model=GeoAssessment,
    dependencies=[Depends(get_optional_user)],
)
async def check_geo(
    command: GeoCheckCommand,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    event_filter: EventFilter = Depends(get_event_filter),
    geo_lookup: GeoLookup = Depends(get_geo_lookup),
):
    """
    Geo-Risk Check

    Blocked and flagged assessments are returned with 200.

    Raises:
        - 400 Bad Request: INVALID_IP_ADDRESS
    """
    use_case = AssessGeoRiskUseCase(
        uow,
        geo_lookup,
        clock,
        event_filter,
        scorer=GeoRiskScorer(
            ApplicationConfig.ALLOWED_COUNTRIES, ApplicationConfig.BLOCKED_COUNTRIES
        ),
        lookup_timeout=ApplicationConfig.GEO_LOOKUP_TIMEOUT_SECONDS,
        store_timeout=ApplicationConfig.STORE_TIMEOUT_SECONDS,
    )
    result = await use_case.execute(command)

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.INVALID_IP_ADDRESS.value:
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value
