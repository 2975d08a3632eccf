from sqlmodel.ext.asyncio.session import AsyncSession

from gateway.app.repositories.security_alert_repository import ISecurityAlertRepository
from gateway.domain.entities import SecurityAlert


class SecurityAlertRepository(ISecurityAlertRepository):
    """SecurityAlert repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, alert: SecurityAlert) -> SecurityAlert:
        """Open a new alert"""
        self.session.add(alert)
        await self.session.flush()
        await self.session.refresh(alert)
        return alert
