"""
Check Rate Limit Use Case

Sliding-window admit/block decision per (endpoint, identifier or IP).
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from gateway.app.services.event_filter import EventFilter
from gateway.app.services.security_event_logger import SecurityEventLogger
from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import (
    DEFAULT_RATE_LIMIT_BLOCK_SECONDS,
    DEFAULT_RATE_LIMIT_MAX_REQUESTS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    DEFAULT_STORE_TIMEOUT_SECONDS,
    RATE_LIMIT_OVERSHOOT_TOLERANCE,
)
from gateway.domain.entities import ErrorCode, RateLimitConfig, Severity
from gateway.domain.payloads import RateLimitAttemptPayload
from gateway.libs.result import Result, Return

from .dtos import RateLimitCheckCommand, RateLimitDecision

logger = logging.getLogger(__name__)


def default_rate_limit(endpoint: str) -> RateLimitConfig:
    return RateLimitConfig(
        endpoint=endpoint,
        max_requests=DEFAULT_RATE_LIMIT_MAX_REQUESTS,
        window_seconds=DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
        block_duration_seconds=DEFAULT_RATE_LIMIT_BLOCK_SECONDS,
    )


def attempt_source(endpoint: str) -> str:
    return f"rate_limit:{endpoint}"


class CheckRateLimitUseCase:
    """
    Use case for checking and recording one rate-limited attempt.

    Business Rules:
    - Unconfigured endpoints get 100 requests / 3600s / 3600s block
    - Blocked when prior attempts in the window >= max_requests
    - Every call records an attempt, blocked ones included
    - Blocked calls also emit a high severity rate_limit_exceeded event
    - After recording, the window is recounted; an admitted call whose
      recount exceeds max_requests + RATE_LIMIT_OVERSHOOT_TOLERANCE is
      turned into a block, which bounds concurrent overshoot
    - Store failure admits (fail_closed=False) or denies (fail_closed=True)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock = utc_now,
        event_filter: Optional[EventFilter] = None,
        fail_closed: bool = False,
        store_timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        self.uow = uow
        self.clock = clock
        self.fail_closed = fail_closed
        self.store_timeout = store_timeout
        self.events = SecurityEventLogger(uow, event_filter, clock, store_timeout)

    async def execute(
        self, command: RateLimitCheckCommand, ip_address: Optional[str] = None
    ) -> Result[RateLimitDecision]:
        now = self.clock()
        ip_address = ip_address or "unknown"

        try:
            async with self.uow:
                decision = await self._check(command, ip_address, now)
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError as exc:
            policy = "deny" if self.fail_closed else "admit"
            logger.error(
                f"Rate limiting unavailable for {command.endpoint}, failing to {policy}: {exc}"
            )
            return Return.ok(
                RateLimitDecision(
                    allowed=not self.fail_closed,
                    attempts=0,
                    max_attempts=0,
                    message="Rate limiting unavailable",
                    reason=ErrorCode.STORE_UNAVAILABLE.value,
                )
            )

        if not decision.allowed:
            logger.warning(
                f"Rate limit exceeded for {command.endpoint} by {command.identifier} "
                f"({decision.attempts}/{decision.max_attempts})"
            )
        return Return.ok(decision)

    async def _check(
        self, command: RateLimitCheckCommand, ip_address: str, now: datetime
    ) -> RateLimitDecision:
        config = await guarded(
            self.uow.rate_limit_configs.get_active_by_endpoint(command.endpoint),
            self.store_timeout,
        )
        if config is None:
            config = default_rate_limit(command.endpoint)

        source = attempt_source(command.endpoint)
        since = now - timedelta(seconds=config.window_seconds)

        prior = await guarded(
            self.uow.security_events.count_rate_limit_attempts(
                source, command.identifier, ip_address, since
            ),
            self.store_timeout,
        )
        blocked = prior >= config.max_requests
        attempts = prior + 1

        await self._record(
            "rate_limit_attempt", command, config, attempts, blocked, source, ip_address
        )

        if not blocked:
            recount = await guarded(
                self.uow.security_events.count_rate_limit_attempts(
                    source, command.identifier, ip_address, since
                ),
                self.store_timeout,
            )
            if recount > config.max_requests + RATE_LIMIT_OVERSHOOT_TOLERANCE:
                logger.warning(
                    f"Concurrent overshoot on {command.endpoint}: {recount} > {config.max_requests}"
                )
                blocked = True
                attempts = recount

        if blocked:
            await self._record(
                "rate_limit_exceeded", command, config, attempts, True, "server", ip_address
            )
            minutes = math.ceil(config.block_duration_seconds / 60)
            message = f"Rate limit exceeded. Try again in {minutes} minutes."
        else:
            message = "Request allowed"

        return RateLimitDecision(
            allowed=not blocked,
            attempts=attempts,
            max_attempts=config.max_requests,
            reset_time=now + timedelta(seconds=config.window_seconds),
            block_duration=config.block_duration_seconds if blocked else None,
            message=message,
            reason=ErrorCode.RATE_LIMIT_EXCEEDED.value if blocked else None,
        )

    async def _record(
        self,
        event_type: str,
        command: RateLimitCheckCommand,
        config: RateLimitConfig,
        attempts: int,
        blocked: bool,
        source: str,
        ip_address: str,
    ):
        await self.events.log(
            event_type,
            Severity.high if blocked else Severity.info,
            source,
            RateLimitAttemptPayload(
                endpoint=command.endpoint,
                identifier=command.identifier,
                action=command.action,
                attempt_count=attempts,
                max_requests=config.max_requests,
                window_seconds=config.window_seconds,
                blocked=blocked,
                block_duration_seconds=config.block_duration_seconds if blocked else None,
            ),
            actor_id=command.identifier,
            ip_address=ip_address,
        )
