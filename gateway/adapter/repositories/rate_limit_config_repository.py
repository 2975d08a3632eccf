from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from gateway.app.repositories.rate_limit_config_repository import IRateLimitConfigRepository
from gateway.domain.entities import RateLimitConfig


class RateLimitConfigRepository(IRateLimitConfigRepository):
    """RateLimitConfig repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_by_endpoint(self, endpoint: str) -> Optional[RateLimitConfig]:
        """Get the active limit for an endpoint"""
        stmt = select(RateLimitConfig).where(
            RateLimitConfig.endpoint == endpoint,
            RateLimitConfig.is_active == True,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_endpoint(self, endpoint: str) -> Optional[RateLimitConfig]:
        """Get the limit row for an endpoint regardless of status"""
        stmt = select(RateLimitConfig).where(RateLimitConfig.endpoint == endpoint)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, config: RateLimitConfig) -> RateLimitConfig:
        """Create or update a limit row"""
        self.session.add(config)
        await self.session.flush()
        await self.session.refresh(config)
        return config
