from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from gateway.domain.entities import UserSession


class IUserSessionRepository(ABC):
    """UserSession repository interface - application layer"""

    @abstractmethod
    async def create(self, session: UserSession) -> UserSession:
        """Create a new session"""
        pass

    @abstractmethod
    async def update(self, session: UserSession) -> UserSession:
        """Update existing session"""
        pass

    @abstractmethod
    async def get_active_by_user_id(
        self, user_id: str, now: datetime, idle_since: datetime
    ) -> List[UserSession]:
        """Active sessions not past expiry and with activity after idle_since"""
        pass

    @abstractmethod
    async def fingerprint_seen(self, user_id: str, device_fingerprint: str) -> bool:
        """Whether any session row, active or not, ever used this fingerprint"""
        pass

    @abstractmethod
    async def list_fingerprints_active_since(self, user_id: str, since: datetime) -> List[str]:
        """Distinct fingerprints of sessions with activity since a time"""
        pass

    @abstractmethod
    async def revoke_all_by_user_id(self, user_id: str) -> int:
        """Revoke all active sessions for a user. Returns count of revoked sessions."""
        pass
