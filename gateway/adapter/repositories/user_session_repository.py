from datetime import datetime
from typing import List

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from gateway.app.repositories.user_session_repository import IUserSessionRepository
from gateway.domain.entities import SessionStatus, UserSession


class UserSessionRepository(IUserSessionRepository):
    """UserSession repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, session_obj: UserSession) -> UserSession:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def update(self, session_obj: UserSession) -> UserSession:
        """Update existing session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def get_active_by_user_id(
        self, user_id: str, now: datetime, idle_since: datetime
    ) -> List[UserSession]:
        """Active, unexpired sessions with recent activity"""
        stmt = select(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.is_active == True,
            UserSession.expires_at > now,
            UserSession.last_activity >= idle_since,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def fingerprint_seen(self, user_id: str, device_fingerprint: str) -> bool:
        """Whether any session row ever used this fingerprint"""
        stmt = (
            select(UserSession.id)
            .where(
                UserSession.user_id == user_id,
                UserSession.device_fingerprint == device_fingerprint,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def list_fingerprints_active_since(self, user_id: str, since: datetime) -> List[str]:
        """Distinct fingerprints of sessions with activity since a time"""
        stmt = (
            select(UserSession.device_fingerprint)
            .where(
                UserSession.user_id == user_id,
                UserSession.last_activity >= since,
            )
            .distinct()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def revoke_all_by_user_id(self, user_id: str) -> int:
        """Revoke all active sessions for a user"""
        stmt = (
            update(UserSession)
            .where(UserSession.user_id == user_id, UserSession.is_active == True)
            .values(is_active=False, status=SessionStatus.revoked)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
