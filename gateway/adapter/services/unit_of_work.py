from sqlmodel.ext.asyncio.session import AsyncSession

from gateway.adapter.repositories.rate_limit_config_repository import RateLimitConfigRepository
from gateway.adapter.repositories.security_alert_repository import SecurityAlertRepository
from gateway.adapter.repositories.security_config_repository import SecurityConfigRepository
from gateway.adapter.repositories.security_event_repository import SecurityEventRepository
from gateway.adapter.repositories.user_session_repository import UserSessionRepository
from gateway.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.security_events = SecurityEventRepository(self.session)
        self.security_configs = SecurityConfigRepository(self.session)
        self.user_sessions = UserSessionRepository(self.session)
        self.rate_limit_configs = RateLimitConfigRepository(self.session)
        self.security_alerts = SecurityAlertRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
