"""
ip-api.com geolocation adapter.

The free tier reports proxy and hosting flags only; VPN and Tor
detection stay False.
"""

import logging
from typing import Optional

import httpx

from gateway.app.services.geo_lookup import GeoLocation, GeoLookup, GeoLookupError

logger = logging.getLogger(__name__)

HTTP_OK = 200
LOOKUP_FIELDS = "status,message,country,countryCode,region,city,isp,org,proxy,hosting"


class IpApiGeoLookup(GeoLookup):
    """GeoLookup implementation over the ip-api.com JSON endpoint"""

    def __init__(
        self,
        base_url: str = "http://ip-api.com/json",
        timeout_seconds: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def lookup(self, ip_address: str) -> Optional[GeoLocation]:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds), transport=self.transport
            ) as client:
                response = await client.get(
                    f"{self.base_url}/{ip_address}", params={"fields": LOOKUP_FIELDS}
                )
        except httpx.HTTPError as exc:
            raise GeoLookupError(f"Geolocation request failed: {exc}") from exc

        if response.status_code != HTTP_OK:
            raise GeoLookupError(f"Geolocation API responded with {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise GeoLookupError("Geolocation API returned invalid JSON") from exc

        if data.get("status") == "fail":
            logger.warning(f"Geolocation lookup failed for {ip_address}: {data.get('message')}")
            return None

        return GeoLocation(
            country=data.get("country") or "Unknown",
            country_code=data.get("countryCode") or "XX",
            region=data.get("region") or "Unknown",
            city=data.get("city") or "Unknown",
            isp=data.get("isp") or "Unknown",
            org=data.get("org") or "Unknown",
            is_proxy=bool(data.get("proxy")),
            is_datacenter=bool(data.get("hosting")),
        )
