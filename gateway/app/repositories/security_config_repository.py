from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from gateway.domain.entities import SecurityConfig


class ISecurityConfigRepository(ABC):
    """SecurityConfig repository interface - application layer"""

    @abstractmethod
    async def create(self, config: SecurityConfig) -> SecurityConfig:
        """Create a new config row"""
        pass

    @abstractmethod
    async def get_active_by_key(self, config_key: str) -> Optional[SecurityConfig]:
        """Get an active config row by key"""
        pass

    @abstractmethod
    async def deactivate_if_active(self, config_key: str, config_value: dict) -> bool:
        """
        Atomically flip is_active true -> false and replace the value.

        Returns True only for the single caller whose update matched an
        active row; concurrent callers for the same key get False.
        """
        pass

    @abstractmethod
    async def list_expired_active(self, key_prefix: str, now: datetime) -> List[SecurityConfig]:
        """Active rows under a key prefix whose expiry has passed"""
        pass
