"""
Rate Limit Config Use Cases

Administrator reads and writes of per-endpoint limits.
"""

import logging

from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import DEFAULT_STORE_TIMEOUT_SECONDS
from gateway.domain.entities import ErrorCode, RateLimitConfig
from gateway.libs.result import Error, Result, Return

from .dtos import RateLimitConfigCommand, RateLimitConfigResponse

logger = logging.getLogger(__name__)


def _to_response(config: RateLimitConfig) -> RateLimitConfigResponse:
    return RateLimitConfigResponse(
        endpoint=config.endpoint,
        max_requests=config.max_requests,
        window_seconds=config.window_seconds,
        block_duration_seconds=config.block_duration_seconds,
        is_active=config.is_active,
        updated_at=config.updated_at,
    )


class UpsertRateLimitConfigUseCase:
    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock = utc_now,
        store_timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        self.uow = uow
        self.clock = clock
        self.store_timeout = store_timeout

    async def execute(
        self, endpoint: str, command: RateLimitConfigCommand
    ) -> Result[RateLimitConfigResponse]:
        try:
            async with self.uow:
                config = await guarded(
                    self.uow.rate_limit_configs.get_by_endpoint(endpoint), self.store_timeout
                )
                if config is None:
                    config = RateLimitConfig(endpoint=endpoint, **command.model_dump())
                else:
                    config.max_requests = command.max_requests
                    config.window_seconds = command.window_seconds
                    config.block_duration_seconds = command.block_duration_seconds
                    config.is_active = command.is_active
                config.updated_at = self.clock()

                config = await guarded(
                    self.uow.rate_limit_configs.save(config), self.store_timeout
                )
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError:
            return Return.err(
                Error(ErrorCode.STORE_UNAVAILABLE.value, "Rate limit store unavailable")
            )

        logger.info(
            f"Rate limit for {endpoint} set to {config.max_requests}/{config.window_seconds}s"
        )
        return Return.ok(_to_response(config))


class GetRateLimitConfigUseCase:
    def __init__(self, uow: UnitOfWork, store_timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS):
        self.uow = uow
        self.store_timeout = store_timeout

    async def execute(self, endpoint: str) -> Result[RateLimitConfigResponse]:
        try:
            async with self.uow:
                config = await guarded(
                    self.uow.rate_limit_configs.get_by_endpoint(endpoint), self.store_timeout
                )
        except StoreUnavailableError:
            return Return.err(
                Error(ErrorCode.STORE_UNAVAILABLE.value, "Rate limit store unavailable")
            )

        if config is None:
            return Return.err(
                Error("RATE_LIMIT_CONFIG_NOT_FOUND", f"No rate limit configured for {endpoint}")
            )
        return Return.ok(_to_response(config))
