"""
Validate Session Use Case

Decides whether a request is consistent with a known, non-anomalous
session for the same device.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from gateway.app.services.event_filter import EventFilter
from gateway.app.services.security_event_logger import SecurityEventLogger
from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import (
    BURST_MAX_GAP,
    BURST_MIN_EVENTS,
    DEFAULT_STORE_TIMEOUT_SECONDS,
    SESSION_ANALYSIS_IGNORED_TYPES,
    SESSION_DISTINCT_IP_LIMIT,
    SESSION_EVENT_LOOKBACK,
    SESSION_HIGH_EVENT_LIMIT,
    SESSION_INACTIVITY_TIMEOUT,
    SESSION_MAX_AGE,
)
from gateway.domain.entities import (
    ErrorCode,
    SecurityLevel,
    SessionStatus,
    Severity,
    UserSession,
)
from gateway.domain.entities.enums import escalate
from gateway.domain.payloads import SessionValidationPayload
from gateway.libs.result import Result, Return

from .dtos import SessionValidationResponse, ValidateSessionCommand

logger = logging.getLogger(__name__)


def detect_burst(
    timestamps: Sequence[datetime],
    min_events: int = BURST_MIN_EVENTS,
    max_gap: timedelta = BURST_MAX_GAP,
) -> bool:
    """True when min_events or more sorted timestamps each follow the previous by < max_gap."""
    ordered = sorted(timestamps)
    if len(ordered) < min_events:
        return False
    run = 1
    for previous, current in zip(ordered, ordered[1:]):
        if current - previous < max_gap:
            run += 1
            if run >= min_events:
                return True
        else:
            run = 1
    return False


@dataclass
class _Verdict:
    valid: bool = True
    reason: Optional[str] = None
    security_level: SecurityLevel = SecurityLevel.normal
    actions: List[str] = field(default_factory=list)

    def fail(self, reason: ErrorCode, level: SecurityLevel, action: Optional[str] = None):
        # First failing rule owns the reason
        if self.valid:
            self.valid = False
            self.reason = reason.value
        self.flag(level, action)

    def flag(self, level: SecurityLevel, action: Optional[str] = None):
        self.security_level = escalate(self.security_level, level)
        if action:
            self.actions.append(action)

    def to_response(self) -> SessionValidationResponse:
        return SessionValidationResponse(
            valid=self.valid,
            reason=self.reason,
            security_level=self.security_level.value,
            actions=list(self.actions),
        )


class ValidateSessionUseCase:
    """
    Use case for session trust validation.

    Rules run in order. The first failing rule sets the reason; the
    security level escalates to the highest reached and actions accumulate.

    1. No active session for the user -> NO_ACTIVE_SESSION (critical)
    2. No active session for the device -> UNKNOWN_DEVICE (critical) when the
       fingerprint was never seen, else SESSION_EXPIRED_FOR_DEVICE (enhanced)
    3. Session older than 24h -> SESSION_TOO_OLD (enhanced), session goes stale
    4. Events in the last hour: any critical -> CRITICAL_EVENTS_DETECTED
       (session anomalous); > 3 high -> enhanced; > 2 distinct IPs -> enhanced;
       a burst of 5 events < 1s apart -> AUTOMATED_ATTACK_SUSPECTED and every
       session of the user is revoked
    5. Otherwise valid; last_activity and security_level are updated

    Store failure yields STORE_UNAVAILABLE at critical level.
    """

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
        self, user_id: str, command: ValidateSessionCommand, ip_address: Optional[str] = None
    ) -> Result[SessionValidationResponse]:
        now = self.clock()
        try:
            async with self.uow:
                verdict = await self._evaluate(user_id, command.device_fingerprint, now)
                await self.events.log(
                    "session_validation",
                    Severity.info if verdict.valid else Severity.medium,
                    "session_validation",
                    SessionValidationPayload(
                        valid=verdict.valid,
                        reason=verdict.reason or "Session validation successful",
                        security_level=verdict.security_level.value,
                        actions=verdict.actions,
                        device_fingerprint=command.device_fingerprint,
                        validation_timestamp=command.timestamp,
                    ),
                    actor_id=user_id,
                    ip_address=ip_address,
                )
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError as exc:
            logger.error(f"Session validation unavailable for user {user_id}: {exc}")
            verdict = _Verdict()
            verdict.fail(
                ErrorCode.STORE_UNAVAILABLE,
                SecurityLevel.critical,
                "Contact system administrator",
            )
            return Return.ok(verdict.to_response())

        if not verdict.valid:
            logger.warning(f"Session invalid for user {user_id}: {verdict.reason}")
        return Return.ok(verdict.to_response())

    async def _evaluate(self, user_id: str, device_fingerprint: str, now: datetime) -> _Verdict:
        verdict = _Verdict()

        sessions = await guarded(
            self.uow.user_sessions.get_active_by_user_id(
                user_id, now, now - SESSION_INACTIVITY_TIMEOUT
            ),
            self.store_timeout,
        )
        if not sessions:
            verdict.fail(ErrorCode.NO_ACTIVE_SESSION, SecurityLevel.critical)
            return verdict

        current = next((s for s in sessions if s.device_fingerprint == device_fingerprint), None)
        if current is None:
            seen = await guarded(
                self.uow.user_sessions.fingerprint_seen(user_id, device_fingerprint),
                self.store_timeout,
            )
            if seen:
                verdict.fail(
                    ErrorCode.SESSION_EXPIRED_FOR_DEVICE,
                    SecurityLevel.enhanced,
                    "Re-authentication required",
                )
            else:
                verdict.fail(
                    ErrorCode.UNKNOWN_DEVICE,
                    SecurityLevel.critical,
                    "Device verification required",
                )
            return verdict

        new_status = SessionStatus.active

        if now - current.created_at > SESSION_MAX_AGE:
            verdict.fail(ErrorCode.SESSION_TOO_OLD, SecurityLevel.enhanced, "Session refresh required")
            new_status = SessionStatus.stale

        events = await guarded(
            self.uow.security_events.list_by_actor_since(user_id, now - SESSION_EVENT_LOOKBACK),
            self.store_timeout,
        )
        events = [e for e in events if e.event_type not in SESSION_ANALYSIS_IGNORED_TYPES]
        revoke_all = False

        if events:
            critical_events = sum(1 for e in events if e.severity == Severity.critical)
            high_events = sum(1 for e in events if e.severity == Severity.high)
            distinct_ips = len({e.ip_address for e in events if e.ip_address})

            if critical_events > 0:
                verdict.fail(
                    ErrorCode.CRITICAL_EVENTS_DETECTED,
                    SecurityLevel.critical,
                    "Immediate security review required",
                )
                new_status = SessionStatus.anomalous
            if high_events > SESSION_HIGH_EVENT_LIMIT:
                verdict.flag(SecurityLevel.enhanced, "Enhanced monitoring active")
            if distinct_ips > SESSION_DISTINCT_IP_LIMIT:
                verdict.flag(SecurityLevel.enhanced, "Multiple IP addresses detected")
            if detect_burst([e.created_at for e in events]):
                verdict.fail(
                    ErrorCode.AUTOMATED_ATTACK_SUSPECTED,
                    SecurityLevel.critical,
                    "Account lockdown initiated",
                )
                revoke_all = True

        if revoke_all:
            revoked = await guarded(
                self.uow.user_sessions.revoke_all_by_user_id(user_id), self.store_timeout
            )
            logger.warning(f"Automated attack suspected, revoked {revoked} session(s) for {user_id}")
        elif verdict.valid:
            await self._touch(current, now, verdict.security_level)
        elif new_status != SessionStatus.active:
            current.status = new_status
            current.is_active = False
            await guarded(self.uow.user_sessions.update(current), self.store_timeout)

        return verdict

    async def _touch(self, session: UserSession, now: datetime, level: SecurityLevel):
        session.last_activity = now
        session.security_level = level
        await guarded(self.uow.user_sessions.update(session), self.store_timeout)
