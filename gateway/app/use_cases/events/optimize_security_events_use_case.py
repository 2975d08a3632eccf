"""
Optimize Security Events Use Case

Periodic compaction of noisy events plus the expired-token sweep.
"""

import logging

from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.app.use_cases.tokens import SweepExpiredTokensUseCase
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import (
    CLIENT_LOG_EVENT_TYPE,
    CLIENT_LOG_PURGE_SEVERITIES,
    CLIENT_LOG_RETENTION,
    DEFAULT_STORE_TIMEOUT_SECONDS,
    LOW_PRIORITY_EVENT_TYPES,
    LOW_PRIORITY_RETENTION,
)
from gateway.domain.entities import ErrorCode, Severity
from gateway.libs.result import Error, Result, Return

from .dtos import OptimizeSecurityEventsResponse

logger = logging.getLogger(__name__)


class OptimizeSecurityEventsUseCase:
    """
    Use case for store maintenance.

    Business Rules:
    - client_log events of info/low/medium severity older than 30 minutes are deleted
    - info events of page_view/ui_interaction/session_heartbeat older than 24h are deleted
    - Expired active tokens are deactivated
    - Every step is one conditional statement, so reruns remove nothing new
      and events ingested meanwhile are never touched
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock = utc_now,
        store_timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        self.uow = uow
        self.clock = clock
        self.store_timeout = store_timeout

    async def execute(self) -> Result[OptimizeSecurityEventsResponse]:
        now = self.clock()
        try:
            async with self.uow:
                client_logs = await guarded(
                    self.uow.security_events.delete_older_than(
                        now - CLIENT_LOG_RETENTION,
                        [CLIENT_LOG_EVENT_TYPE],
                        CLIENT_LOG_PURGE_SEVERITIES,
                    ),
                    self.store_timeout,
                )
                low_priority = await guarded(
                    self.uow.security_events.delete_older_than(
                        now - LOW_PRIORITY_RETENTION,
                        LOW_PRIORITY_EVENT_TYPES,
                        [Severity.info.value],
                    ),
                    self.store_timeout,
                )
                tokens = await SweepExpiredTokensUseCase(
                    self.uow, self.clock, self.store_timeout
                ).execute()
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError as exc:
            logger.error(f"Security event optimization failed: {exc}")
            return Return.err(
                Error(ErrorCode.STORE_UNAVAILABLE.value, "Event store unavailable")
            )

        logger.info(
            f"Optimization removed {client_logs} client log and {low_priority} "
            f"low priority events, deactivated {tokens} token(s)"
        )
        return Return.ok(
            OptimizeSecurityEventsResponse(
                client_log_events_cleaned=client_logs,
                low_priority_events_cleaned=low_priority,
                expired_tokens_deactivated=tokens,
            )
        )
