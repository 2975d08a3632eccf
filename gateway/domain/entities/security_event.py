"""
SecurityEvent Entity

Append-only log of gateway decisions and client-reported security events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from gateway.domain.base import utc_now

from .enums import Severity


class SecurityEvent(SQLModel, table=True):
    """
    SecurityEvent entity - immutable record of a security-relevant outcome.

    Business Rules:
    - Never updated once written
    - Admission is decided by the event filter before the write
    - actor_id holds the user identifier, or the rate-limit identifier
      for rate_limit_attempt rows
    - Only maintenance deletes rows, and only noisy low-severity types
    """

    __tablename__ = "security_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    event_type: str = Field(max_length=100)
    severity: Severity = Field(default=Severity.info)
    source: str = Field(default="server", max_length=255)

    actor_id: Optional[str] = Field(default=None, max_length=255)
    session_id: Optional[str] = Field(default=None, max_length=255)
    ip_address: Optional[str] = Field(default=None, max_length=64)

    risk_score: int = Field(default=0)
    payload: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_security_event_created_at", "created_at"),
        Index("idx_security_event_type_source", "event_type", "source"),
        Index("idx_security_event_actor", "actor_id", "created_at"),
        Index("idx_security_event_ip", "ip_address"),
    )
