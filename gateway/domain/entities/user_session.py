"""
UserSession Entity

Device-bound session rows consulted by the session trust validator.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from gateway.domain.base import utc_now

from .enums import SecurityLevel, SessionStatus


class UserSession(SQLModel, table=True):
    """
    UserSession entity - one row per (user, device) login.

    Business Rules:
    - Created at login with a 7 day absolute expiry; goes stale after 24 hours
    - Lapses after 30 minutes without validated activity
    - last_activity and security_level are last-writer-wins
    - Leaves the active status only through validation outcomes or revocation
    """

    __tablename__ = "user_sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: str = Field(max_length=255, index=True)
    device_fingerprint: str = Field(max_length=255)

    is_active: bool = Field(default=True)
    status: SessionStatus = Field(default=SessionStatus.active)
    security_level: SecurityLevel = Field(default=SecurityLevel.normal)

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    last_activity: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_user_session_user_fingerprint", "user_id", "device_fingerprint"),
        Index("idx_user_session_active", "is_active"),
    )
