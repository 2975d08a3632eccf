"""
Validate Token Use Case

Single-use validation of anti-forgery tokens.
"""

import logging
from datetime import datetime
from typing import Optional

from gateway.app.services.event_filter import EventFilter
from gateway.app.services.security_event_logger import SecurityEventLogger
from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import DEFAULT_STORE_TIMEOUT_SECONDS
from gateway.domain.entities import ErrorCode, Severity, TokenStatus
from gateway.domain.payloads import TokenValidationPayload
from gateway.libs.result import Error, Result, Return

from .dtos import TokenValidationResponse, ValidateTokenCommand
from .token_hashing import token_config_key, token_preview

logger = logging.getLogger(__name__)


class ValidateTokenUseCase:
    """
    Use case for validating and consuming a token.

    Business Rules:
    - Token must exist and be active, else TOKEN_NOT_FOUND
    - Validation strictly after expires_at fails with TOKEN_EXPIRED and retires the token
    - A session mismatch is rejected without consuming the token
    - Success flips active -> used with a compare-and-set; of any number
      of concurrent validators exactly one succeeds
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
        self, command: ValidateTokenCommand, ip_address: Optional[str] = None
    ) -> Result[TokenValidationResponse]:
        now = self.clock()
        key = token_config_key(command.token)
        preview = token_preview(command.token)

        try:
            async with self.uow:
                result = await self._validate(key, preview, command.session_id, now, ip_address)
                await guarded(self.uow.commit(), self.store_timeout)
                return result
        except StoreUnavailableError as exc:
            logger.error(f"Token validation unavailable: {exc}")
            return Return.err(
                Error(ErrorCode.STORE_UNAVAILABLE.value, "Token store unavailable")
            )

    async def _validate(
        self,
        key: str,
        preview: str,
        session_id: Optional[str],
        now: datetime,
        ip_address: Optional[str],
    ) -> Result[TokenValidationResponse]:
        record = await guarded(self.uow.security_configs.get_active_by_key(key), self.store_timeout)

        if record is None:
            await self._log_failure(
                "csrf_token_validation_failed", Severity.medium, preview, "token_not_found",
                session_id, ip_address,
            )
            return Return.err(Error(ErrorCode.TOKEN_NOT_FOUND.value, "Invalid token"))

        value = dict(record.config_value or {})

        if record.expires_at is not None and now > record.expires_at:
            value.update(status=TokenStatus.expired.value, expired_at=now.isoformat())
            await guarded(
                self.uow.security_configs.deactivate_if_active(key, value), self.store_timeout
            )
            await self._log_failure(
                "csrf_token_validation_failed", Severity.low, preview, "token_expired",
                session_id, ip_address,
            )
            return Return.err(Error(ErrorCode.TOKEN_EXPIRED.value, "Token expired"))

        expected_session = value.get("session_id")
        if session_id and expected_session != session_id:
            await self.events.log(
                "csrf_token_session_mismatch",
                Severity.high,
                "csrf_validation",
                TokenValidationPayload(
                    token_preview=preview,
                    reason="session_mismatch",
                    session_id=session_id,
                    expected_session=expected_session,
                ),
                session_id=session_id,
                ip_address=ip_address,
            )
            return Return.err(
                Error(ErrorCode.TOKEN_SESSION_MISMATCH.value, "Session mismatch")
            )

        value.update(
            status=TokenStatus.used.value,
            used_at=now.isoformat(),
            used_ip=ip_address or "unknown",
        )
        won = await guarded(
            self.uow.security_configs.deactivate_if_active(key, value), self.store_timeout
        )
        if not won:
            # Another validator consumed it between our read and write
            logger.warning(f"Lost token compare-and-set for {preview}")
            return Return.err(Error(ErrorCode.TOKEN_NOT_FOUND.value, "Invalid token"))

        await self.events.log(
            "csrf_token_validated_successfully",
            Severity.info,
            "csrf_validation",
            TokenValidationPayload(token_preview=preview, session_id=expected_session),
            session_id=expected_session,
            ip_address=ip_address,
        )
        return Return.ok(TokenValidationResponse(is_valid=True))

    async def _log_failure(
        self,
        event_type: str,
        severity: Severity,
        preview: str,
        reason: str,
        session_id: Optional[str],
        ip_address: Optional[str],
    ):
        await self.events.log(
            event_type,
            severity,
            "csrf_validation",
            TokenValidationPayload(token_preview=preview, reason=reason, session_id=session_id),
            session_id=session_id,
            ip_address=ip_address,
        )
