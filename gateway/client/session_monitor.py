"""
Periodic session re-validation.

Runs one asyncio task that re-validates the session on a fixed
interval and hands invalid verdicts to a callback.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Optional

from gateway.client.gateway_client import GatewayClient, GatewayClientError
from gateway.domain.constants import SESSION_REVALIDATION_INTERVAL

logger = logging.getLogger(__name__)

InvalidHandler = Callable[[Dict[str, Any]], Any]


class SessionMonitor:
    def __init__(
        self,
        client: GatewayClient,
        device_fingerprint: str,
        on_invalid: Optional[InvalidHandler] = None,
        interval: float = SESSION_REVALIDATION_INTERVAL.total_seconds(),
    ):
        self.client = client
        self.device_fingerprint = device_fingerprint
        self.on_invalid = on_invalid
        self.interval = interval
        self.last_result: Optional[Dict[str, Any]] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, *args):
        await self.stop()

    def start(self):
        if self.running:
            return
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

    async def check_once(self) -> Optional[Dict[str, Any]]:
        try:
            result = await self.client.validate_session(self.device_fingerprint)
        except GatewayClientError as exc:
            logger.warning(f"Session re-validation failed: {exc}")
            return None

        self.last_result = result
        if not result.get("valid") and self.on_invalid is not None:
            logger.warning(f"Session invalid: {result.get('reason')}")
            outcome = self.on_invalid(result)
            if inspect.isawaitable(outcome):
                await outcome
        return result

    async def _run(self):
        while True:
            await self.check_once()
            await asyncio.sleep(self.interval)
