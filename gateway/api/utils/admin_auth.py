"""
Admin API Key Authentication

Validates admin API keys for rate-limit configuration and maintenance endpoints.
"""

from fastapi import Header, status

from config import ApplicationConfig
from gateway.api.error import ClientError
from gateway.libs.result import Error


async def verify_admin_api_key(x_admin_api_key: str = Header(None)):
    """
    Verify admin API key from X-Admin-API-Key header.

    Service-to-service auth for operators and schedulers, separate from
    user bearer tokens.

    Raises:
        ClientError: 401 if key is missing or invalid
    """
    if not x_admin_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Admin API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if x_admin_api_key != ApplicationConfig.ADMIN_API_KEY:
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid admin API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
