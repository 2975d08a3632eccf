"""
Record Security Event Use Case

Ingests externally reported security events through the event filter.
"""

import logging
from typing import Optional

from gateway.app.services.event_filter import EventFilter
from gateway.app.services.security_event_logger import SecurityEventLogger
from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import DEFAULT_STORE_TIMEOUT_SECONDS
from gateway.domain.entities import ErrorCode
from gateway.libs.result import Error, Result, Return

from .dtos import RecordSecurityEventCommand, RecordSecurityEventResponse

logger = logging.getLogger(__name__)


class RecordSecurityEventUseCase:
    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock = utc_now,
        event_filter: Optional[EventFilter] = None,
        store_timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        self.uow = uow
        self.store_timeout = store_timeout
        self.events = SecurityEventLogger(uow, event_filter, clock, store_timeout)

    async def execute(
        self,
        command: RecordSecurityEventCommand,
        actor_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Result[RecordSecurityEventResponse]:
        try:
            async with self.uow:
                event = await self.events.log(
                    command.event_type,
                    command.severity,
                    command.source,
                    command.event_data,
                    actor_id=actor_id or command.user_id,
                    session_id=command.session_id,
                    ip_address=ip_address,
                )
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError:
            return Return.err(
                Error(ErrorCode.STORE_UNAVAILABLE.value, "Event store unavailable")
            )

        if event is None:
            return Return.ok(
                RecordSecurityEventResponse(
                    success=True, logged=False, reason="Filtered by intelligent logging"
                )
            )
        return Return.ok(
            RecordSecurityEventResponse(success=True, logged=True, event_id=str(event.id))
        )
