from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class GeoLookupError(Exception):
    """The geolocation collaborator failed or timed out."""


class GeoLocation(BaseModel):
    """What the geolocation collaborator knows about an address"""

    country: str = "Unknown"
    country_code: str = "XX"
    region: str = "Unknown"
    city: str = "Unknown"
    isp: str = "Unknown"
    org: str = "Unknown"
    is_proxy: bool = False
    is_vpn: bool = False
    is_tor: bool = False
    is_datacenter: bool = False


class GeoLookup(ABC):
    """Geolocation collaborator interface - application layer"""

    @abstractmethod
    async def lookup(self, ip_address: str) -> Optional[GeoLocation]:
        """
        Resolve an IP address.

        Returns None when the provider has no answer for the address.
        Raises GeoLookupError on transport failure or timeout.
        """
        pass
