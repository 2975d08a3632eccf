from abc import ABC, abstractmethod

from gateway.domain.entities import SecurityAlert


class ISecurityAlertRepository(ABC):
    """SecurityAlert repository interface - application layer"""

    @abstractmethod
    async def create(self, alert: SecurityAlert) -> SecurityAlert:
        """Open a new alert"""
        pass
