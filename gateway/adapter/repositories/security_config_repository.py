from datetime import datetime
from typing import List, Optional

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from gateway.app.repositories.security_config_repository import ISecurityConfigRepository
from gateway.domain.entities import SecurityConfig


class SecurityConfigRepository(ISecurityConfigRepository):
    """SecurityConfig repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, config: SecurityConfig) -> SecurityConfig:
        """Create a new config row"""
        self.session.add(config)
        await self.session.flush()
        await self.session.refresh(config)
        return config

    async def get_active_by_key(self, config_key: str) -> Optional[SecurityConfig]:
        """Get an active config row by key"""
        stmt = select(SecurityConfig).where(
            SecurityConfig.config_key == config_key,
            SecurityConfig.is_active == True,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def deactivate_if_active(self, config_key: str, config_value: dict) -> bool:
        """
        Compare-and-set is_active true -> false.

        The WHERE clause carries the expected state, so the database
        serializes concurrent callers and exactly one sees rowcount == 1.
        """
        stmt = (
            update(SecurityConfig)
            .where(
                SecurityConfig.config_key == config_key,
                SecurityConfig.is_active == True,
            )
            .values(is_active=False, config_value=config_value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def list_expired_active(self, key_prefix: str, now: datetime) -> List[SecurityConfig]:
        """Active rows under a key prefix whose expiry has passed"""
        stmt = select(SecurityConfig).where(
            SecurityConfig.config_key.startswith(key_prefix),
            SecurityConfig.is_active == True,
            SecurityConfig.expires_at < now,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
