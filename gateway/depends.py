from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from gateway.adapter.services.ip_api_geo_lookup import IpApiGeoLookup
from gateway.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from gateway.api.error import ClientError
from gateway.api.utils.jwt import verify_jwt
from gateway.app.services.event_filter import DuplicateSuppressionFilter, EventFilter
from gateway.app.services.geo_lookup import GeoLookup
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.entities import ErrorCode
from gateway.libs.result import Error

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_clock() -> Clock:
    return utc_now


def get_geo_lookup() -> GeoLookup:
    return IpApiGeoLookup(
        base_url=ApplicationConfig.GEO_LOOKUP_URL,
        timeout_seconds=ApplicationConfig.GEO_LOOKUP_TIMEOUT_SECONDS,
    )


def get_event_filter(
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
) -> EventFilter:
    return DuplicateSuppressionFilter(
        uow,
        window=timedelta(seconds=ApplicationConfig.EVENT_DEDUP_WINDOW_SECONDS),
        clock=clock,
    )


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[dict]:
    """
    Decode the bearer token when one is sent.

    Public endpoints accept an optional bearer credential; a missing
    one yields None, an invalid one is rejected.

    Raises:
        HTTPException: 401 if a token is present but invalid or expired
    """
    if credentials is None:
        return None

    payload = verify_jwt(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return payload


async def get_current_user(
    current_user: Optional[dict] = Depends(get_optional_user),
) -> dict:
    """
    Require an authenticated caller.

    Returns:
        Decoded JWT payload containing user_id

    Raises:
        ClientError: 401 UNAUTHORIZED if no bearer token was sent
        HTTPException: 401 if the token is invalid or expired
    """
    if not current_user or not current_user.get("user_id"):
        raise ClientError(
            Error(ErrorCode.UNAUTHORIZED.value, "Bearer token required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return current_user
