from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from gateway.app.repositories.security_event_repository import ISecurityEventRepository
from gateway.domain.entities import SecurityEvent


class SecurityEventRepository(ISecurityEventRepository):
    """SecurityEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, event: SecurityEvent) -> SecurityEvent:
        """Append a new security event (immutable)"""
        self.session.add(event)
        await self.session.flush()
        await self.session.refresh(event)
        return event

    async def count_rate_limit_attempts(
        self, source: str, identifier: str, ip_address: Optional[str], since: datetime
    ) -> int:
        """
        Count attempts in the window for (source, identifier OR ip).

        An unknown IP never matches, otherwise every caller without an
        IP would share one bucket.
        """
        match_actor = SecurityEvent.actor_id == identifier
        if ip_address and ip_address != "unknown":
            match_actor = or_(match_actor, SecurityEvent.ip_address == ip_address)

        stmt = (
            select(func.count())
            .select_from(SecurityEvent)
            .where(
                SecurityEvent.event_type == "rate_limit_attempt",
                SecurityEvent.source == source,
                SecurityEvent.created_at >= since,
                match_actor,
            )
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def list_by_actor_since(
        self,
        actor_id: str,
        since: datetime,
        severities: Optional[List[str]] = None,
    ) -> List[SecurityEvent]:
        """Events for an actor since a time, oldest first"""
        stmt = select(SecurityEvent).where(
            SecurityEvent.actor_id == actor_id,
            SecurityEvent.created_at >= since,
        )
        if severities:
            stmt = stmt.where(SecurityEvent.severity.in_(severities))
        stmt = stmt.order_by(SecurityEvent.created_at.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_actor_and_types_since(
        self, actor_id: str, event_types: List[str], since: datetime, limit: int
    ) -> List[SecurityEvent]:
        """Most recent events of the given types for an actor, newest first"""
        stmt = (
            select(SecurityEvent)
            .where(
                SecurityEvent.actor_id == actor_id,
                SecurityEvent.event_type.in_(event_types),
                SecurityEvent.created_at >= since,
            )
            .order_by(SecurityEvent.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def exists_since(
        self,
        event_type: str,
        source: str,
        severity: str,
        since: datetime,
        actor_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> bool:
        """Whether a matching event was stored since a time. A None actor or address matches NULL."""
        stmt = (
            select(SecurityEvent.id)
            .where(
                SecurityEvent.event_type == event_type,
                SecurityEvent.source == source,
                SecurityEvent.severity == severity,
                SecurityEvent.actor_id == actor_id,
                SecurityEvent.ip_address == ip_address,
                SecurityEvent.created_at >= since,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def delete_older_than(
        self, before: datetime, event_types: List[str], severities: List[str]
    ) -> int:
        """
        Delete noisy events older than a horizon.

        A single conditional DELETE, so re-running it is a no-op and rows
        written concurrently (always newer than the horizon) are untouched.
        """
        stmt = delete(SecurityEvent).where(
            SecurityEvent.created_at < before,
            SecurityEvent.event_type.in_(event_types),
            SecurityEvent.severity.in_(severities),
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
