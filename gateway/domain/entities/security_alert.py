"""
SecurityAlert Entity

Opened for every critical security event that reaches the store.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from gateway.domain.base import utc_now

from .enums import AlertStatus


class SecurityAlert(SQLModel, table=True):
    __tablename__ = "security_alerts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    alert_type: str = Field(max_length=100)
    priority: str = Field(default="critical", max_length=20)
    status: AlertStatus = Field(default=AlertStatus.open)
    event_id: Optional[UUID] = Field(default=None, foreign_key="security_events.id")
    actor_id: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=1000)

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
