"""
Event admission predicates.

ShouldLog is consulted before every security event write. The predicate
is pluggable; SecurityEventLogger enforces the invariants that hold for
all of them (critical events always pass, exempt types always pass).
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Optional

from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import EVENT_DEDUP_WINDOW
from gateway.domain.entities import Severity


class EventFilter(ABC):
    """Decides whether an event is novel enough to be written"""

    @abstractmethod
    async def should_log(
        self,
        event_type: str,
        severity: Severity,
        source: str,
        actor_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> bool:
        pass


class DuplicateSuppressionFilter(EventFilter):
    """
    Suppress repeated info/low events from the same caller.

    An event is dropped when a row with the same type, source, severity,
    actor and client address was already stored inside the dedup window.
    Events from other actors or addresses never suppress each other.
    Anything above low severity is always admitted.
    """

    SUPPRESSIBLE = (Severity.info, Severity.low)

    def __init__(
        self,
        uow: UnitOfWork,
        window: timedelta = EVENT_DEDUP_WINDOW,
        clock: Clock = utc_now,
    ):
        self.uow = uow
        self.window = window
        self.clock = clock

    async def should_log(
        self,
        event_type: str,
        severity: Severity,
        source: str,
        actor_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> bool:
        if severity not in self.SUPPRESSIBLE:
            return True
        since = self.clock() - self.window
        duplicate = await self.uow.security_events.exists_since(
            event_type, source, severity.value, since, actor_id=actor_id, ip_address=ip_address
        )
        return not duplicate
