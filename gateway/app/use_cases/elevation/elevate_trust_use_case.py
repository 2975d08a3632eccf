"""
Elevate Trust Use Case

Risk-based trust elevation for sensitive operations.
"""

import logging
from datetime import datetime
from typing import List, Optional, Set

from gateway.app.services.event_filter import EventFilter
from gateway.app.services.security_event_logger import SecurityEventLogger
from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import (
    DEFAULT_STORE_TIMEOUT_SECONDS,
    ELEVATION_CRITICAL_EVENT_PENALTY,
    ELEVATION_DEVICE_HISTORY_LIMIT,
    ELEVATION_DEVICE_LOOKBACK,
    ELEVATION_EVENT_LOOKBACK,
    ELEVATION_HIGH_EVENT_PENALTY,
    ELEVATION_MAX_BOOST,
    ELEVATION_MIN_BASE,
    ELEVATION_UNKNOWN_DEVICE_PENALTY,
    TRUST_SCORE_MAX,
    TRUST_THRESHOLDS,
)
from gateway.domain.entities import ElevationMethod, ErrorCode, Severity, TrustLevel
from gateway.domain.payloads import (
    ElevationAttemptPayload,
    SessionValidationPayload,
    device_fingerprint_of,
    parse_payload,
)
from gateway.libs.result import Result, Return

from .dtos import ElevateTrustCommand, ElevationResponse

logger = logging.getLogger(__name__)

DEVICE_HISTORY_EVENT_TYPES = [
    "session_validation",
    "zero_trust_verification",
    "access_elevation_attempt",
]

METHOD_FOR_LEVEL = {
    TrustLevel.critical: ElevationMethod.critical_security_challenge,
    TrustLevel.elevated: ElevationMethod.enhanced_verification,
    TrustLevel.normal: ElevationMethod.basic_verification,
}

STEPS_FOR_LEVEL = {
    TrustLevel.critical: [
        "Multi-factor authentication required",
        "Device verification required",
        "Security question verification",
        "Time-limited access (1 hour maximum)",
    ],
    TrustLevel.elevated: [
        "Additional authentication factor required",
        "Device confirmation needed",
    ],
    TrustLevel.normal: [],
}

INSUFFICIENT_BASE = {
    TrustLevel.critical: (
        "Trust score too low for critical access elevation",
        ["Complete full re-authentication", "Contact administrator for manual verification"],
    ),
    TrustLevel.elevated: (
        "Trust score too low for elevated access",
        ["Complete identity re-verification"],
    ),
}


def compute_boost(
    current_score: int,
    level: TrustLevel,
    critical_events: int,
    high_events: int,
    known_device: bool,
) -> int:
    """
    Bounded score boost toward the level's threshold.

    Below the level's minimum base the raw boost is 0; penalties then
    apply and the result is never negative.
    """
    threshold = TRUST_THRESHOLDS[level.value]
    boost = 0
    if current_score >= ELEVATION_MIN_BASE[level.value]:
        boost = min(threshold - current_score, ELEVATION_MAX_BOOST[level.value])
    boost -= (
        ELEVATION_CRITICAL_EVENT_PENALTY * critical_events
        + ELEVATION_HIGH_EVENT_PENALTY * high_events
    )
    if not known_device:
        boost -= ELEVATION_UNKNOWN_DEVICE_PENALTY
    return max(0, boost)


class ElevateTrustUseCase:
    """
    Use case for trust elevation.

    Business Rules:
    - Thresholds: normal 70, elevated 85, critical 95
    - Score already at threshold succeeds with already_sufficient; the
      attempt is logged but does not vouch for the device
    - critical needs a base of 75 (max boost 20), elevated 60 (max boost 25),
      otherwise fails with insufficient_base_score
    - normal needs 50 for a boost (max 20); below that the boost is 0
    - Penalty 5 per critical and 2 per high event in 24h, 10 for a device
      not seen in the last 7 days
    - new score = min(100, current + max(0, boost)); success iff >= threshold
    - Every attempt is logged with the full computation
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
        self, user_id: str, command: ElevateTrustCommand, ip_address: Optional[str] = None
    ) -> Result[ElevationResponse]:
        level = command.required_level
        current = command.current_trust_score
        threshold = TRUST_THRESHOLDS[level.value]

        if current >= threshold:
            return Return.ok(await self._already_sufficient(user_id, command, ip_address))

        now = self.clock()
        try:
            async with self.uow:
                response = await self._elevate(user_id, command, threshold, now, ip_address)
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError as exc:
            logger.error(f"Trust elevation unavailable for user {user_id}: {exc}")
            return Return.ok(
                ElevationResponse(
                    success=False,
                    new_trust_score=current,
                    method=METHOD_FOR_LEVEL[level].value,
                    additional_steps_required=["Contact system administrator"],
                    message="Elevation system unavailable",
                    reason=ErrorCode.STORE_UNAVAILABLE.value,
                )
            )

        logger.info(
            f"Elevation for {user_id} to {level.value}: "
            f"{current} -> {response.new_trust_score} ({'ok' if response.success else 'failed'})"
        )
        return Return.ok(response)

    async def _already_sufficient(
        self, user_id: str, command: ElevateTrustCommand, ip_address: Optional[str]
    ) -> ElevationResponse:
        response = ElevationResponse(
            success=True,
            new_trust_score=command.current_trust_score,
            method=ElevationMethod.already_sufficient.value,
            message="Current trust score already meets requirements",
        )
        try:
            async with self.uow:
                await self._log_attempt(
                    user_id, command, command.current_trust_score, 0,
                    ElevationMethod.already_sufficient, True, [], 0, 0, True, ip_address,
                )
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError as exc:
            # Decision stands without the audit row
            logger.error(f"Could not log sufficient trust for user {user_id}: {exc}")
        return response

    async def _elevate(
        self,
        user_id: str,
        command: ElevateTrustCommand,
        threshold: int,
        now: datetime,
        ip_address: Optional[str],
    ) -> ElevationResponse:
        level = command.required_level
        current = command.current_trust_score

        if level in INSUFFICIENT_BASE and current < ELEVATION_MIN_BASE[level.value]:
            message, steps = INSUFFICIENT_BASE[level]
            await self._log_attempt(
                user_id, command, current, 0, ElevationMethod.insufficient_base_score,
                False, steps, 0, 0, True, ip_address,
            )
            return ElevationResponse(
                success=False,
                new_trust_score=current,
                method=ElevationMethod.insufficient_base_score.value,
                additional_steps_required=list(steps),
                message=message,
                reason=ErrorCode.INSUFFICIENT_BASE_SCORE.value,
            )

        method = METHOD_FOR_LEVEL[level]
        steps: List[str] = list(STEPS_FOR_LEVEL[level])

        recent = await guarded(
            self.uow.security_events.list_by_actor_since(
                user_id, now - ELEVATION_EVENT_LOOKBACK, severities=["high", "critical"]
            ),
            self.store_timeout,
        )
        critical_events = sum(1 for e in recent if e.severity == Severity.critical)
        high_events = sum(1 for e in recent if e.severity == Severity.high)
        if critical_events:
            steps.append("Security incident review required")

        known = await self._known_fingerprints(user_id, now)
        known_device = command.device_fingerprint in known
        if not known_device:
            steps.append("New device verification required")

        boost = compute_boost(current, level, critical_events, high_events, known_device)
        new_score = min(TRUST_SCORE_MAX, current + boost)
        success = new_score >= threshold

        await self._log_attempt(
            user_id, command, new_score, boost, method, success, steps,
            critical_events, high_events, known_device, ip_address,
        )

        return ElevationResponse(
            success=success,
            new_trust_score=new_score,
            method=method.value,
            additional_steps_required=steps,
            message=(
                f"Access elevated successfully using {method.value}"
                if success
                else "Elevation failed - additional verification required"
            ),
        )

    async def _known_fingerprints(self, user_id: str, now: datetime) -> Set[str]:
        """Fingerprints vouched for by successful checks or recent sessions in the last 7 days"""
        since = now - ELEVATION_DEVICE_LOOKBACK
        history = await guarded(
            self.uow.security_events.list_by_actor_and_types_since(
                user_id, DEVICE_HISTORY_EVENT_TYPES, since, ELEVATION_DEVICE_HISTORY_LIMIT
            ),
            self.store_timeout,
        )

        known: Set[str] = set()
        for event in history:
            payload = parse_payload(event.event_type, event.payload)
            # Failed or unverified attempts carry the fingerprint too but vouch for nothing
            if isinstance(payload, SessionValidationPayload) and not payload.valid:
                continue
            if isinstance(payload, ElevationAttemptPayload) and (
                not payload.success
                or payload.method == ElevationMethod.already_sufficient.value
            ):
                continue
            fingerprint = device_fingerprint_of(event.event_type, event.payload)
            if fingerprint:
                known.add(fingerprint)

        known.update(
            await guarded(
                self.uow.user_sessions.list_fingerprints_active_since(user_id, since),
                self.store_timeout,
            )
        )
        return known

    async def _log_attempt(
        self,
        user_id: str,
        command: ElevateTrustCommand,
        new_score: int,
        boost: int,
        method: ElevationMethod,
        success: bool,
        steps: List[str],
        critical_events: int,
        high_events: int,
        known_device: bool,
        ip_address: Optional[str],
    ):
        await self.events.log(
            "access_elevation_attempt",
            Severity.info if success else Severity.medium,
            "access_elevation",
            ElevationAttemptPayload(
                required_level=command.required_level.value,
                current_score=command.current_trust_score,
                new_trust_score=new_score,
                score_boost=boost,
                method=method.value,
                success=success,
                device_fingerprint=command.device_fingerprint,
                critical_events=critical_events,
                high_events=high_events,
                known_device=known_device,
                additional_steps_required=steps,
            ),
            actor_id=user_id,
            ip_address=ip_address,
        )
