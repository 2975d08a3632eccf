"""
Background anti-forgery token rotation.

A TokenRotator owns one asyncio task. It issues a token on start,
re-issues on a fixed interval and whenever a periodic check finds the
current token expired. stop() cancels and awaits the task.
"""

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from gateway.client.gateway_client import GatewayClient, GatewayClientError
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import TOKEN_EXPIRY_CHECK_INTERVAL, TOKEN_ROTATION_INTERVAL

logger = logging.getLogger(__name__)


@dataclass
class TokenState:
    value: str
    expires_at: datetime
    fallback: bool = False


class TokenRotator:
    def __init__(
        self,
        client: GatewayClient,
        session_id: str,
        rotation_interval: float = TOKEN_ROTATION_INTERVAL.total_seconds(),
        expiry_check_interval: float = TOKEN_EXPIRY_CHECK_INTERVAL.total_seconds(),
        clock: Clock = utc_now,
    ):
        self.client = client
        self.session_id = session_id
        self.rotation_interval = rotation_interval
        self.expiry_check_interval = expiry_check_interval
        self.clock = clock
        self.token: Optional[TokenState] = None
        self.rotations = 0
        self._task: Optional[asyncio.Task] = None
        self._last_rotation = 0.0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *args):
        await self.stop()

    async def start(self):
        if self.running:
            return
        await self.rotate()
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def is_expired(self) -> bool:
        return self.token is None or self.clock() >= self.token.expires_at

    async def rotate(self) -> TokenState:
        try:
            issued = await self.client.issue_token(self.session_id, rotation_scheduled=True)
            self.token = TokenState(
                value=issued["token"],
                expires_at=datetime.fromisoformat(issued["expiresAt"]).replace(tzinfo=None),
            )
        except (GatewayClientError, KeyError, ValueError) as exc:
            logger.warning(
                f"Token rotation failed, using client-only fallback token for "
                f"non-critical requests: {exc}"
            )
            self.token = TokenState(
                value=secrets.token_hex(32),
                expires_at=self.clock() + timedelta(seconds=self.rotation_interval),
                fallback=True,
            )
        self.rotations += 1
        self._last_rotation = time.monotonic()
        return self.token

    async def _run(self):
        tick = min(self.rotation_interval, self.expiry_check_interval)
        while True:
            await asyncio.sleep(tick)
            due = time.monotonic() - self._last_rotation >= self.rotation_interval
            if due or self.is_expired():
                await self.rotate()
