"""
Register Session Use Case

Login-side hook that opens a device-bound session.
"""

import logging
from typing import Optional

from gateway.app.services.event_filter import EventFilter
from gateway.app.services.security_event_logger import SecurityEventLogger
from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import DEFAULT_STORE_TIMEOUT_SECONDS, SESSION_ABSOLUTE_TTL
from gateway.domain.entities import ErrorCode, Severity, UserSession
from gateway.libs.result import Error, Result, Return

from .dtos import RegisterSessionResponse

logger = logging.getLogger(__name__)


class RegisterSessionUseCase:
    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock = utc_now,
        event_filter: Optional[EventFilter] = None,
        store_timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        self.uow = uow
        self.clock = clock
        self.store_timeout = store_timeout
        self.events = SecurityEventLogger(uow, event_filter, clock, store_timeout)

    async def execute(
        self, user_id: str, device_fingerprint: str, ip_address: Optional[str] = None
    ) -> Result[RegisterSessionResponse]:
        now = self.clock()
        session = UserSession(
            user_id=user_id,
            device_fingerprint=device_fingerprint,
            created_at=now,
            last_activity=now,
            expires_at=now + SESSION_ABSOLUTE_TTL,
        )

        try:
            async with self.uow:
                session = await guarded(self.uow.user_sessions.create(session), self.store_timeout)
                await self.events.log(
                    "session_registered",
                    Severity.info,
                    "session_validation",
                    {"device_fingerprint": device_fingerprint},
                    actor_id=user_id,
                    session_id=str(session.id),
                    ip_address=ip_address,
                )
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError:
            return Return.err(
                Error(ErrorCode.STORE_UNAVAILABLE.value, "Session store unavailable")
            )

        logger.info(f"Registered session {session.id} for user {user_id}")
        return Return.ok(
            RegisterSessionResponse(
                session_id=str(session.id),
                user_id=user_id,
                expires_at=session.expires_at,
            )
        )
