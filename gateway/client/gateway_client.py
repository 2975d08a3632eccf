"""
HTTP client for the gateway endpoints.

Used by the client-side coordinators; every call goes through one
httpx.AsyncClient with a fixed timeout.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

HTTP_SERVICE_UNAVAILABLE = 503


class GatewayClientError(RuntimeError):
    """The gateway could not be reached or rejected the request."""


def epoch_ms() -> int:
    return int(time.time() * 1000)


class GatewayClient:
    """Thin async wrapper over the gateway's JSON endpoints"""

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        api_prefix: str = "/api",
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self.api_prefix = api_prefix.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def _post(self, path: str, body: Dict[str, Any], accept_unavailable: bool = False) -> Dict[str, Any]:
        try:
            response = await self._client.post(f"{self.api_prefix}{path}", json=body)
        except httpx.HTTPError as exc:
            raise GatewayClientError(f"Gateway request to {path} failed: {exc}") from exc

        if response.status_code == HTTP_SERVICE_UNAVAILABLE and accept_unavailable:
            return response.json()
        if response.status_code >= 400:
            raise GatewayClientError(
                f"Gateway responded to {path} with {response.status_code}: {response.text}"
            )
        return response.json()

    async def issue_token(
        self,
        session_id: str,
        rotation_scheduled: bool = False,
        user_agent: Optional[str] = None,
        entropy: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {
            "sessionId": session_id,
            "timestamp": epoch_ms(),
            "rotationScheduled": rotation_scheduled,
        }
        if user_agent:
            body["userAgent"] = user_agent
        if entropy:
            body["entropy"] = entropy
        return await self._post("/tokens", body)

    async def validate_token(self, token: str, session_id: Optional[str] = None) -> Dict[str, Any]:
        return await self._post("/tokens/validate", {"token": token, "sessionId": session_id})

    async def check_rate_limit(
        self, endpoint: str, identifier: str, action: str = "access", secure: bool = False
    ) -> Dict[str, Any]:
        path = "/rate-limit/secure-check" if secure else "/rate-limit/check"
        return await self._post(path, {"endpoint": endpoint, "identifier": identifier, "action": action})

    async def validate_session(self, device_fingerprint: str) -> Dict[str, Any]:
        # 503 still carries the invalid/critical verdict
        return await self._post(
            "/sessions/validate",
            {"deviceFingerprint": device_fingerprint, "timestamp": epoch_ms()},
            accept_unavailable=True,
        )

    async def elevate_trust(
        self, current_trust_score: int, required_level: str, device_fingerprint: str
    ) -> Dict[str, Any]:
        return await self._post(
            "/trust/elevate",
            {
                "currentTrustScore": current_trust_score,
                "requiredLevel": required_level,
                "deviceFingerprint": device_fingerprint,
                "timestamp": epoch_ms(),
            },
        )
