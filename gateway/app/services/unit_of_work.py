from abc import ABC, abstractmethod

from gateway.app.repositories.rate_limit_config_repository import IRateLimitConfigRepository
from gateway.app.repositories.security_alert_repository import ISecurityAlertRepository
from gateway.app.repositories.security_config_repository import ISecurityConfigRepository
from gateway.app.repositories.security_event_repository import ISecurityEventRepository
from gateway.app.repositories.user_session_repository import IUserSessionRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    security_events: ISecurityEventRepository
    security_configs: ISecurityConfigRepository
    user_sessions: IUserSessionRepository
    rate_limit_configs: IRateLimitConfigRepository
    security_alerts: ISecurityAlertRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
