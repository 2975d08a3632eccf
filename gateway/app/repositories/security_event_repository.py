from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from gateway.domain.entities import SecurityEvent


class ISecurityEventRepository(ABC):
    """SecurityEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, event: SecurityEvent) -> SecurityEvent:
        """Append a new security event (immutable)"""
        pass

    @abstractmethod
    async def count_rate_limit_attempts(
        self, source: str, identifier: str, ip_address: Optional[str], since: datetime
    ) -> int:
        """Count rate_limit_attempt rows for a source matching identifier OR ip since a time"""
        pass

    @abstractmethod
    async def list_by_actor_since(
        self,
        actor_id: str,
        since: datetime,
        severities: Optional[List[str]] = None,
    ) -> List[SecurityEvent]:
        """Events for an actor since a time, oldest first, optionally filtered by severity"""
        pass

    @abstractmethod
    async def list_by_actor_and_types_since(
        self, actor_id: str, event_types: List[str], since: datetime, limit: int
    ) -> List[SecurityEvent]:
        """Most recent events of the given types for an actor, newest first"""
        pass

    @abstractmethod
    async def exists_since(
        self,
        event_type: str,
        source: str,
        severity: str,
        since: datetime,
        actor_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> bool:
        """Whether an event with the same type, source, severity, actor and address was stored since a time"""
        pass

    @abstractmethod
    async def delete_older_than(
        self, before: datetime, event_types: List[str], severities: List[str]
    ) -> int:
        """Delete events of the given types and severities created before a time. Returns count."""
        pass
