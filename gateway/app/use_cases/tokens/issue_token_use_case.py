"""
Issue Token Use Case

Issues a one-time anti-forgery token bound to a session.
"""

import logging
import re
from typing import Optional

from gateway.app.services.event_filter import EventFilter
from gateway.app.services.security_event_logger import SecurityEventLogger
from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, from_epoch_ms, to_epoch_ms, utc_now
from gateway.domain.constants import (
    DEFAULT_STORE_TIMEOUT_SECONDS,
    SESSION_ID_MIN_LENGTH,
    SESSION_ID_PATTERN,
    TOKEN_DEFAULT_TTL,
    TOKEN_REPLAY_WINDOW,
    TOKEN_ROTATION_TTL,
)
from gateway.domain.entities import (
    ErrorCode,
    SecurityConfig,
    Severity,
    TokenSecurityLevel,
    TokenStatus,
)
from gateway.domain.payloads import TokenIssuedPayload
from gateway.libs.result import Error, Result, Return

from .dtos import IssueTokenCommand, IssueTokenResponse
from .token_hashing import derive_token, sha256_hex, token_config_key

logger = logging.getLogger(__name__)

_SESSION_ID_RE = re.compile(SESSION_ID_PATTERN)


class IssueTokenUseCase:
    """
    Use case for issuing anti-forgery tokens.

    Business Rules:
    - Client timestamp must be within the replay window of server time
    - Session identifier must be at least 16 chars of [A-Za-z0-9_-]
    - Expiry is 1 hour, 30 minutes when a rotation is scheduled
    - Only the SHA-256 of the token is persisted, keyed by that hash
    - Security level is enhanced when the client supplied extra entropy
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
        self, command: IssueTokenCommand, ip_address: Optional[str] = None
    ) -> Result[IssueTokenResponse]:
        now = self.clock()

        skew_ms = abs(to_epoch_ms(now) - command.timestamp)
        if skew_ms > TOKEN_REPLAY_WINDOW.total_seconds() * 1000:
            logger.warning(f"Rejected token request with clock skew {skew_ms}ms")
            return Return.err(
                Error(
                    ErrorCode.REPLAY_WINDOW_VIOLATION.value,
                    "Invalid timestamp - potential replay attack",
                )
            )

        session_id = command.session_id
        if len(session_id) < SESSION_ID_MIN_LENGTH or not _SESSION_ID_RE.match(session_id):
            return Return.err(
                Error(
                    ErrorCode.INVALID_SESSION_IDENTIFIER.value,
                    "Invalid session identifier format",
                )
            )

        token = derive_token(
            session_id,
            command.timestamp,
            user_agent=command.user_agent,
            entropy=command.entropy,
            behavioral_fingerprint=command.behavioral_fingerprint,
            additional_entropy=command.additional_entropy,
        )

        ttl = TOKEN_ROTATION_TTL if command.rotation_scheduled else TOKEN_DEFAULT_TTL
        expires_at = now + ttl

        client_entropy = bool(
            command.entropy or command.behavioral_fingerprint or command.additional_entropy
        )
        security_level = (
            TokenSecurityLevel.enhanced if client_entropy else TokenSecurityLevel.standard
        )

        record = SecurityConfig(
            config_key=token_config_key(token),
            config_value={
                "token_hash": sha256_hex(token),
                "session_id": session_id,
                "created_at": now.isoformat(),
                "expires_at": expires_at.isoformat(),
                "client_timestamp": from_epoch_ms(command.timestamp).isoformat(),
                "user_agent_hash": sha256_hex(command.user_agent) if command.user_agent else None,
                "ip_address": ip_address or "unknown",
                "entropy_provided": bool(command.entropy),
                "rotation_scheduled": command.rotation_scheduled,
                "security_level": security_level.value,
                "status": TokenStatus.active.value,
            },
            is_active=True,
            expires_at=expires_at,
            created_at=now,
        )

        try:
            async with self.uow:
                await guarded(self.uow.security_configs.create(record), self.store_timeout)
                await self.events.log(
                    "csrf_token_generated",
                    Severity.info,
                    "csrf_generation",
                    TokenIssuedPayload(
                        session_id=session_id,
                        token_expiration=expires_at.isoformat(),
                        security_level=security_level.value,
                        rotation_scheduled=command.rotation_scheduled,
                        entropy_sources={
                            "crypto_random": True,
                            "timestamp": True,
                            "session_id": True,
                            "user_agent": bool(command.user_agent),
                            "client_entropy": bool(command.entropy),
                            "behavioral_fingerprint": bool(command.behavioral_fingerprint),
                            "additional_entropy": bool(command.additional_entropy),
                        },
                    ),
                    session_id=session_id,
                    ip_address=ip_address,
                )
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError as exc:
            logger.error(f"Failed to store token for session {session_id[:8]}: {exc}")
            return Return.err(
                Error(ErrorCode.STORE_UNAVAILABLE.value, "Failed to store token securely")
            )

        logger.info(f"Issued {security_level.value} token for session {session_id[:8]}...")

        return Return.ok(
            IssueTokenResponse(
                token=token,
                expires_at=expires_at,
                security_level=security_level.value,
                rotation_scheduled=command.rotation_scheduled,
            )
        )
