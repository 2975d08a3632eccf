from abc import ABC, abstractmethod
from typing import Optional

from gateway.domain.entities import RateLimitConfig


class IRateLimitConfigRepository(ABC):
    """RateLimitConfig repository interface - application layer"""

    @abstractmethod
    async def get_active_by_endpoint(self, endpoint: str) -> Optional[RateLimitConfig]:
        """Get the active limit for an endpoint"""
        pass

    @abstractmethod
    async def get_by_endpoint(self, endpoint: str) -> Optional[RateLimitConfig]:
        """Get the limit row for an endpoint regardless of status"""
        pass

    @abstractmethod
    async def save(self, config: RateLimitConfig) -> RateLimitConfig:
        """Create or update a limit row"""
        pass
