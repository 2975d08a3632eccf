"""
Sweep Expired Tokens Use Case

Retires token records whose expiry has passed without use.
"""

import logging

from gateway.app.services.store_guard import guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import DEFAULT_STORE_TIMEOUT_SECONDS, TOKEN_CONFIG_KEY_PREFIX
from gateway.domain.entities import TokenStatus

logger = logging.getLogger(__name__)


class SweepExpiredTokensUseCase:
    """
    Deactivate expired active tokens, marking them expired.

    Runs inside the caller's unit of work; each record goes through the
    same compare-and-set as validation, so a token consumed concurrently
    is simply skipped.
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

    async def execute(self) -> int:
        now = self.clock()
        expired = await guarded(
            self.uow.security_configs.list_expired_active(TOKEN_CONFIG_KEY_PREFIX, now),
            self.store_timeout,
        )

        count = 0
        for record in expired:
            value = dict(record.config_value or {})
            value.update(status=TokenStatus.expired.value, expired_at=now.isoformat())
            if await guarded(
                self.uow.security_configs.deactivate_if_active(record.config_key, value),
                self.store_timeout,
            ):
                count += 1

        if count:
            logger.info(f"Deactivated {count} expired token(s)")
        return count
