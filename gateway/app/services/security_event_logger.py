"""
Security event writer.

Every gateway component records outcomes through this logger: it runs
the event filter, stamps a risk score, writes the event and opens an
alert for critical events.
"""

import logging
from typing import Any, Dict, Optional, Union

from gateway.app.services.event_filter import EventFilter
from gateway.app.services.store_guard import guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import (
    DEFAULT_STORE_TIMEOUT_SECONDS,
    EVENT_FILTER_EXEMPT_TYPES,
    HIGH_RISK_EVENT_BONUS,
    HIGH_RISK_EVENT_TYPES,
    SEVERITY_RISK_SCORES,
)
from gateway.domain.entities import SecurityAlert, SecurityEvent, Severity
from gateway.domain.payloads import EventPayload

logger = logging.getLogger(__name__)


def risk_score_for(event_type: str, severity: Severity) -> int:
    score = SEVERITY_RISK_SCORES.get(severity.value, SEVERITY_RISK_SCORES["info"])
    if event_type in HIGH_RISK_EVENT_TYPES:
        score = min(100, score + HIGH_RISK_EVENT_BONUS)
    return score


class SecurityEventLogger:
    """
    Writes security events through the event filter.

    Business Rules:
    - Critical events are never suppressed, whatever the filter says
    - Exempt event types (rate-limit counters) bypass the filter
    - If the filter itself fails, only high/critical events are written
    - Critical events also open a SecurityAlert
    """

    def __init__(
        self,
        uow: UnitOfWork,
        event_filter: Optional[EventFilter] = None,
        clock: Clock = utc_now,
        store_timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        self.uow = uow
        self.event_filter = event_filter
        self.clock = clock
        self.store_timeout = store_timeout

    async def should_log(
        self,
        event_type: str,
        severity: Severity,
        source: str,
        actor_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> bool:
        if severity == Severity.critical or event_type in EVENT_FILTER_EXEMPT_TYPES:
            return True
        if self.event_filter is None:
            return True
        try:
            return await guarded(
                self.event_filter.should_log(event_type, severity, source, actor_id, ip_address),
                self.store_timeout,
            )
        except Exception as exc:
            logger.error(f"Event filter failed for {event_type}, admitting high/critical only: {exc}")
            return severity in (Severity.high, Severity.critical)

    async def log(
        self,
        event_type: str,
        severity: Union[Severity, str],
        source: str,
        payload: Union[EventPayload, Dict[str, Any], None] = None,
        actor_id: Optional[str] = None,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        risk_score: Optional[int] = None,
    ) -> Optional[SecurityEvent]:
        """
        Write an event if the filter admits it.

        Returns the stored event, or None when it was filtered out.
        Raises StoreUnavailableError when the write itself fails.
        """
        severity = Severity(severity)

        if not await self.should_log(event_type, severity, source, actor_id, ip_address):
            logger.debug(f"Filtered out {event_type} ({severity.value}) from {source}")
            return None

        if isinstance(payload, EventPayload):
            payload = payload.to_json()

        event = SecurityEvent(
            event_type=event_type,
            severity=severity,
            source=source,
            actor_id=actor_id,
            session_id=session_id,
            ip_address=ip_address,
            risk_score=risk_score if risk_score is not None else risk_score_for(event_type, severity),
            payload=payload or {},
            created_at=self.clock(),
        )
        event = await guarded(self.uow.security_events.create(event), self.store_timeout)

        if severity == Severity.critical:
            alert = SecurityAlert(
                alert_type=event_type,
                event_id=event.id,
                actor_id=actor_id,
                notes=f"Critical security event detected: {event_type}",
                created_at=self.clock(),
            )
            await guarded(self.uow.security_alerts.create(alert), self.store_timeout)
            logger.warning(f"Opened critical security alert for {event_type}")

        return event
