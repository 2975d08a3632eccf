"""
Timeout and failure guard for store access.

Use cases wrap every repository call so a slow or failing store turns
into StoreUnavailableError, which each use case maps to its documented
safe default instead of hanging or leaking a driver exception.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreUnavailableError(Exception):
    """The event/config/session store did not answer in time or failed."""


async def guarded(awaitable: Awaitable[T], timeout: float) -> T:
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error(f"Store call timed out after {timeout}s")
        raise StoreUnavailableError("Store call timed out") from exc
    except (SQLAlchemyError, OSError) as exc:
        logger.error(f"Store call failed: {exc}")
        raise StoreUnavailableError(str(exc)) from exc
